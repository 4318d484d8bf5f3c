from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from learning_journal import crud
from learning_journal.core.exceptions import (
    InvalidCursorError,
    InvalidPageSizeError,
    MalformedIdError,
    NotFoundError,
    UnsupportedTypeError,
    ValidationError,
)
from learning_journal.graphql.common import NodeType, to_global_id
from learning_journal.graphql.utils import encode_cursor
from learning_journal.services import learning_log_service as service
from learning_journal.services.filters import LearningLogFilter

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

VALID_FIELDS = {
    "title": "Window functions",
    "reflection": "ROW_NUMBER over partitions",
    "tags": ["sql"],
    "time_spent": 25,
}


async def _seed(create_log, count, **kwargs):
    return [
        await create_log(title=f"Entry {index}", created_at=BASE + timedelta(minutes=index), **kwargs)
        for index in range(count)
    ]


# --- list_entries ---


@pytest.mark.asyncio
@pytest.mark.parametrize("first", [0, -1, True])
async def test_list_entries_rejects_bad_page_size(db_session, first):
    with pytest.raises(InvalidPageSizeError):
        await service.list_entries(db_session, first=first)


@pytest.mark.asyncio
async def test_list_entries_first_page(db_session, create_log):
    logs = await _seed(create_log, 3)
    connection = await service.list_entries(db_session, first=2)

    assert [edge.node.id for edge in connection.edges] == [logs[2].id, logs[1].id]
    assert connection.page_info.has_next_page
    assert not connection.page_info.has_previous_page
    assert connection.page_info.start_cursor == encode_cursor(logs[2].id)
    assert connection.page_info.end_cursor == encode_cursor(logs[1].id)


@pytest.mark.asyncio
async def test_list_entries_after_cursor(db_session, create_log):
    logs = await _seed(create_log, 3)
    connection = await service.list_entries(db_session, first=5, after=encode_cursor(logs[1].id))

    assert [edge.node.id for edge in connection.edges] == [logs[0].id]
    assert not connection.page_info.has_next_page
    assert connection.page_info.has_previous_page


@pytest.mark.asyncio
async def test_list_entries_ties_on_created_at_break_by_id(db_session, create_log):
    logs = [await create_log(title=f"Tie {index}", created_at=BASE) for index in range(4)]
    expected = sorted((log.id for log in logs), reverse=True)

    first = await service.list_entries(db_session, first=2)
    second = await service.list_entries(db_session, first=2, after=first.page_info.end_cursor)
    ids = [edge.node.id for edge in first.edges + second.edges]
    assert ids == expected


@pytest.mark.asyncio
async def test_list_entries_stable_when_rows_inserted_between_pages(db_session, create_log):
    logs = await _seed(create_log, 4)
    first = await service.list_entries(db_session, first=2)
    first_ids = [edge.node.id for edge in first.edges]
    assert first_ids == [logs[3].id, logs[2].id]

    # One row newer than everything loaded, one tied with the end cursor row
    newer = await create_log(title="Newer", created_at=BASE + timedelta(hours=1))
    tied = await create_log(title="Tied", created_at=logs[2].created_at)

    second = await service.list_entries(db_session, first=10, after=first.page_info.end_cursor)
    second_ids = [edge.node.id for edge in second.edges]

    boundary = (logs[2].created_at, logs[2].id)
    expected = sorted(
        (log for log in (tied, logs[1], logs[0]) if (log.created_at, log.id) < boundary),
        key=lambda log: (log.created_at, log.id),
        reverse=True,
    )
    assert second_ids == [log.id for log in expected]
    assert newer.id not in second_ids
    assert set(first_ids).isdisjoint(second_ids)
    assert {logs[1].id, logs[0].id} <= set(second_ids)
    assert not second.page_info.has_next_page


@pytest.mark.asyncio
async def test_list_entries_has_previous_page_honours_filter(db_session, create_log):
    sql_log = await create_log(title="sql", tags=("sql",), created_at=BASE)
    python_log = await create_log(title="py", tags=("python",), created_at=BASE + timedelta(hours=1))
    cursor = encode_cursor(python_log.id)

    # Nothing matching the filter sorts at or before the cursor row
    filtered = await service.list_entries(
        db_session, first=5, after=cursor, filter=LearningLogFilter(tags_any=("sql",))
    )
    assert [edge.node.id for edge in filtered.edges] == [sql_log.id]
    assert not filtered.page_info.has_previous_page

    unfiltered = await service.list_entries(db_session, first=5, after=cursor)
    assert [edge.node.id for edge in unfiltered.edges] == [sql_log.id]
    assert unfiltered.page_info.has_previous_page


@pytest.mark.asyncio
async def test_list_entries_foreign_cursor_gives_empty_page(db_session, create_log):
    await _seed(create_log, 2)
    connection = await service.list_entries(db_session, first=10, after=encode_cursor("missing"))
    assert connection.edges == []
    assert not connection.page_info.has_next_page
    assert connection.page_info.end_cursor is None


@pytest.mark.asyncio
async def test_list_entries_invalid_cursor(db_session):
    with pytest.raises(InvalidCursorError):
        await service.list_entries(db_session, first=10, after="***")


@pytest.mark.asyncio
async def test_list_entries_degrades_when_storage_unavailable(db_session, mocker):
    mocker.patch.object(
        crud.learning_log,
        "get_multi_paginated_async",
        side_effect=OperationalError("SELECT", {}, Exception("connection refused")),
    )
    connection = await service.list_entries(db_session, first=10)
    assert connection.edges == []
    assert not connection.page_info.has_next_page


# --- Mutations ---


@pytest.mark.asyncio
async def test_create_entry(db_session):
    created = await service.create_entry(db_session, dict(VALID_FIELDS))
    assert created.id
    assert created.tags == ["sql"]
    assert created.created_at is not None
    assert await crud.learning_log.aget(db_session, created.id) is created


@pytest.mark.asyncio
async def test_create_entry_validation(db_session):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_entry(db_session, {**VALID_FIELDS, "time_spent": 1500, "tags": []})
    assert exc_info.value.errors == {
        "timeSpent": "Keep it under 24 hours",
        "tags": "Add at least one tag",
    }
    assert exc_info.value.extensions["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_update_entry_changes_only_given_fields(db_session, create_log):
    log = await create_log(source_url="https://example.com")
    global_id = to_global_id(NodeType.LEARNING_LOG, log.id)

    updated = await service.update_entry(db_session, global_id, {"time_spent": 90, "tags": ["a", "b"]})
    assert updated.time_spent == 90
    assert updated.tags == ["a", "b"]
    assert updated.title == "Read about asyncio"
    assert updated.source_url == "https://example.com"

    cleared = await service.update_entry(db_session, global_id, {"source_url": None})
    assert cleared.source_url is None


@pytest.mark.asyncio
async def test_update_entry_requires_a_field(db_session, create_log):
    log = await create_log()
    with pytest.raises(ValidationError) as exc_info:
        await service.update_entry(db_session, to_global_id(NodeType.LEARNING_LOG, log.id), {})
    assert exc_info.value.errors == {"title": "Provide at least one field to update"}


@pytest.mark.asyncio
async def test_update_entry_validates_before_decoding_id(db_session):
    with pytest.raises(ValidationError):
        await service.update_entry(db_session, "not-an-id", {"title": ""})


@pytest.mark.asyncio
async def test_update_entry_id_errors(db_session):
    with pytest.raises(MalformedIdError):
        await service.update_entry(db_session, "not-an-id", {"title": "ok"})
    with pytest.raises(UnsupportedTypeError):
        await service.update_entry(db_session, to_global_id("Course", "1"), {"title": "ok"})
    with pytest.raises(NotFoundError):
        await service.update_entry(
            db_session, to_global_id(NodeType.LEARNING_LOG, "missing"), {"title": "ok"}
        )


@pytest.mark.asyncio
async def test_delete_entry(db_session, create_log):
    log = await create_log()
    global_id = to_global_id(NodeType.LEARNING_LOG, log.id)

    assert await service.delete_entry(db_session, global_id) == global_id
    assert await crud.learning_log.aget(db_session, log.id) is None

    with pytest.raises(NotFoundError):
        await service.delete_entry(db_session, global_id)
