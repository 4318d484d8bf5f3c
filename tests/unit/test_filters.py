from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from learning_journal.core.exceptions import InvalidDateError
from learning_journal.models.learning_log import LearningLog
from learning_journal.services.filters import (
    LearningLogFilter,
    compile_filter,
    matches_filter,
    normalize_filter,
    parse_date_bound,
)

MAY_1 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _entry(**overrides):
    values = {
        "title": "GraphQL pagination",
        "reflection": "Cursors are opaque",
        "tags": ["graphql", "api"],
        "created_at": MAY_1,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


# --- Parsing ---


def test_parse_date_bound_variants():
    assert parse_date_bound(None, "from") is None
    assert parse_date_bound("  ", "from") is None
    assert parse_date_bound("2024-05-01", "from") == datetime(2024, 5, 1, tzinfo=UTC)
    assert parse_date_bound("2024-05-01T12:00:00Z", "to") == MAY_1
    assert parse_date_bound("2024-05-01T14:00:00+02:00", "to") == MAY_1


def test_parse_date_bound_invalid():
    with pytest.raises(InvalidDateError) as exc_info:
        parse_date_bound("yesterday", "to")
    assert exc_info.value.extensions == {"code": "INVALID_DATE", "field": "to"}


def test_normalize_filter_drops_inactive_clauses():
    compiled = normalize_filter(LearningLogFilter(tags_any=("a", "a", "b"), q="   "))
    assert compiled.tags_any == ("a", "b")
    assert compiled.q is None
    assert not compiled.is_empty
    assert normalize_filter(LearningLogFilter()).is_empty
    assert normalize_filter(None).is_empty


def test_from_wire_reads_camel_case_keys():
    value = LearningLogFilter.from_wire({"tagsAny": ["x"], "tagsAll": ["y"], "from": "2024-01-01"})
    assert value == LearningLogFilter(tags_any=("x",), tags_all=("y",), from_="2024-01-01")
    assert LearningLogFilter.from_wire(None) == LearningLogFilter()


# --- In-memory matching ---


def test_matches_empty_filter():
    assert matches_filter(None, _entry())
    assert matches_filter(LearningLogFilter(), _entry(tags=[]))


def test_matches_tags_any_and_all():
    entry = _entry()
    assert matches_filter(LearningLogFilter(tags_any=("python", "api")), entry)
    assert not matches_filter(LearningLogFilter(tags_any=("python",)), entry)
    assert matches_filter(LearningLogFilter(tags_all=("graphql", "api")), entry)
    assert not matches_filter(LearningLogFilter(tags_all=("graphql", "python")), entry)


def test_matches_q_case_insensitive_in_title_or_reflection():
    entry = _entry()
    assert matches_filter(LearningLogFilter(q="PAGINATION"), entry)
    assert matches_filter(LearningLogFilter(q="opaque"), entry)
    assert not matches_filter(LearningLogFilter(q="sql"), entry)


def test_matches_inclusive_date_bounds():
    entry = _entry()
    assert matches_filter(LearningLogFilter(from_="2024-05-01T12:00:00Z"), entry)
    assert matches_filter(LearningLogFilter(to="2024-05-01T12:00:00Z"), entry)
    assert not matches_filter(LearningLogFilter(from_="2024-05-02"), entry)
    assert not matches_filter(LearningLogFilter(to="2024-04-30"), entry)
    # Naive stored timestamps are UTC
    assert matches_filter(
        LearningLogFilter(from_="2024-05-01"), _entry(created_at=datetime(2024, 5, 1, 8, 0))
    )


def test_matches_conjunction_of_clauses():
    entry = _entry()
    both = LearningLogFilter(tags_any=("graphql",), q="cursors")
    assert matches_filter(both, entry)
    assert not matches_filter(LearningLogFilter(tags_any=("graphql",), q="nothing"), entry)


# --- SQL compilation ---


@pytest.mark.asyncio
async def test_compile_filter_agrees_with_matches_filter(db_session, create_log):
    await create_log(title="SQL joins", tags=("sql", "databases"), created_at=MAY_1)
    await create_log(
        title="Pagination 100%", tags=("graphql",), created_at=MAY_1 + timedelta(days=1)
    )
    await create_log(
        title="Async tips",
        reflection="gather vs TaskGroup",
        tags=("python", "graphql"),
        created_at=MAY_1 + timedelta(days=2),
    )
    await create_log(
        title="Über Grammatik",
        reflection="Kasus und Präpositionen",
        tags=("german",),
        created_at=MAY_1 + timedelta(days=3),
    )

    filters = [
        LearningLogFilter(tags_any=("sql", "python")),
        LearningLogFilter(tags_all=("python", "graphql")),
        LearningLogFilter(q="taskgroup"),
        LearningLogFilter(q="100%"),
        LearningLogFilter(q="über"),
        LearningLogFilter(q="PRÄPOSITIONEN"),
        LearningLogFilter(from_="2024-05-02", to="2024-05-02T23:59:59Z"),
        LearningLogFilter(tags_any=("graphql",), q="async"),
    ]
    all_logs = (await db_session.execute(select(LearningLog))).scalars().all()
    for value in filters:
        rows = (
            (await db_session.execute(select(LearningLog).filter(*compile_filter(value))))
            .scalars()
            .all()
        )
        expected = {log.id for log in all_logs if matches_filter(value, log)}
        assert {row.id for row in rows} == expected, value
        assert expected, value


@pytest.mark.asyncio
async def test_compile_filter_escapes_like_wildcards(db_session, create_log):
    await create_log(title="Coverage at 100 percent")
    rows = (
        (await db_session.execute(select(LearningLog).filter(*compile_filter(LearningLogFilter(q="100%")))))
        .scalars()
        .all()
    )
    assert rows == []
