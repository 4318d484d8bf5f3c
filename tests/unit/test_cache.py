from datetime import UTC, datetime, timedelta

import pytest

from learning_journal.client.cache import (
    TEMP_ID_PREFIX,
    CachedEdge,
    ConnectionCache,
    ConnectionState,
    LogEntry,
    apply_update,
    build_optimistic_entry,
    connection_key,
    insert_optimistic,
    reconcile,
    remove_entry,
    rollback,
)

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


def _entry(entry_id, hours_ago, tags=("python",), title="Entry"):
    return LogEntry(
        id=entry_id,
        title=title,
        reflection="notes",
        tags=tuple(tags),
        time_spent=30,
        source_url=None,
        created_at=NOW - timedelta(hours=hours_ago),
    )


def _state(*entries, filter=None, has_next_page=False):
    return ConnectionState(
        filter=filter,
        edges=tuple(CachedEdge(entry=entry, cursor=f"c-{entry.id}") for entry in entries),
        has_next_page=has_next_page,
        end_cursor=f"c-{entries[-1].id}" if entries else None,
    )


CREATE_FIELDS = {
    "title": "Fresh",
    "reflection": "Just learned it",
    "tags": ["python"],
    "timeSpent": 15,
}


def test_connection_key_is_stable():
    assert connection_key(None) == "{}"
    assert connection_key({}) == "{}"
    assert connection_key({"tagsAny": ["b", "a"], "q": "x"}) == connection_key(
        {"q": "x", "tagsAny": ["a", "b"]}
    )
    assert connection_key({"q": None}) == "{}"


def test_optimistic_entry_has_temp_id():
    entry = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    assert entry.id.startswith(TEMP_ID_PREFIX)
    assert entry.is_optimistic
    assert entry.created_at == NOW
    assert build_optimistic_entry(CREATE_FIELDS).id != entry.id


def test_log_entry_from_wire():
    entry = LogEntry.from_wire(
        {
            "id": "TGVhcm5pbmdMb2c6MQ==",
            "title": "T",
            "reflection": "R",
            "tags": ["a"],
            "timeSpent": 5,
            "sourceUrl": None,
            "createdAt": "2024-05-01T12:00:00.000Z",
        }
    )
    assert entry.created_at == datetime(2024, 5, 1, 12, tzinfo=UTC)
    assert entry.tags == ("a",)
    assert not entry.is_optimistic


def test_insert_optimistic_prepends_fresh_entry():
    state = _state(_entry("a", 1), _entry("b", 2))
    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    assert insert_optimistic(state, fresh).ids == [fresh.id, "a", "b"]


def test_insert_optimistic_places_by_created_at():
    state = _state(_entry("a", 1), _entry("c", 3))
    middle = _entry("b", 2)
    assert insert_optimistic(state, middle).ids == ["a", "b", "c"]


def test_insert_optimistic_skips_entries_past_loaded_window():
    state = _state(_entry("a", 1), has_next_page=True)
    older = _entry("z", 10)
    assert insert_optimistic(state, older) == state
    # Fully loaded connections take it at the end
    assert insert_optimistic(_state(_entry("a", 1)), older).ids == ["a", "z"]


def test_insert_optimistic_respects_filter():
    sql_only = _state(_entry("a", 1, tags=("sql",)), filter={"tagsAny": ["sql"]})
    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    assert insert_optimistic(sql_only, fresh) == sql_only


def test_reconcile_replaces_temp_entry():
    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    state = insert_optimistic(_state(_entry("a", 1)), fresh)
    server = _entry("server-1", 0)
    reconciled = reconcile(state, fresh.id, server, cursor="c-server-1")
    assert reconciled.ids == ["server-1", "a"]
    assert reconciled.find("server-1").cursor == "c-server-1"
    assert reconciled.find(fresh.id) is None


def test_reconcile_does_not_duplicate():
    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    server = _entry("server-1", 0)
    state = insert_optimistic(_state(server), fresh)
    assert reconcile(state, fresh.id, server).ids == ["server-1"]


def test_rollback_of_create_removes_temp_entry():
    snapshot = _state(_entry("a", 1), _entry("b", 2))
    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    state = insert_optimistic(snapshot, fresh)
    assert rollback(state, snapshot, fresh.id) == snapshot


def test_rollback_of_delete_restores_position():
    snapshot = _state(_entry("a", 1), _entry("b", 2), _entry("c", 3), has_next_page=True)
    state = remove_entry(snapshot, "b")
    assert rollback(state, snapshot, "b") == snapshot


def test_rollback_keeps_unrelated_changes():
    snapshot = _state(_entry("a", 1), _entry("b", 2))
    other = _entry("x", 1.5)
    state = insert_optimistic(remove_entry(snapshot, "a"), other)
    restored = rollback(state, snapshot, "a")
    assert restored.ids == ["a", "x", "b"]


def test_apply_update_edits_in_place():
    state = _state(_entry("a", 1), _entry("b", 2))
    edited = _entry("b", 2, title="Edited")
    assert apply_update(state, edited).find("b").entry.title == "Edited"
    assert apply_update(state, edited).ids == ["a", "b"]


def test_apply_update_drops_entry_that_no_longer_matches():
    state = _state(_entry("a", 1), filter={"tagsAny": ["python"]})
    assert apply_update(state, _entry("a", 1, tags=("sql",))).ids == []


def test_apply_update_ignores_unknown_entry():
    state = _state(_entry("a", 1))
    assert apply_update(state, _entry("zz", 1)) == state


def test_with_fields_uses_wire_names():
    entry = _entry("a", 1).with_fields({"timeSpent": 90, "sourceUrl": "", "tags": ["x"]})
    assert entry.time_spent == 90
    assert entry.source_url is None
    assert entry.tags == ("x",)


# --- ConnectionCache ---


def _page(*entries, has_next_page=False):
    edges = [
        {
            "cursor": f"c-{entry.id}",
            "node": {
                "id": entry.id,
                "title": entry.title,
                "reflection": entry.reflection,
                "tags": list(entry.tags),
                "timeSpent": entry.time_spent,
                "sourceUrl": entry.source_url,
                "createdAt": entry.created_at.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
            },
        }
        for entry in entries
    ]
    return {
        "edges": edges,
        "pageInfo": {
            "hasNextPage": has_next_page,
            "hasPreviousPage": False,
            "startCursor": edges[0]["cursor"] if edges else None,
            "endCursor": edges[-1]["cursor"] if edges else None,
        },
    }


def test_store_page_appends_and_replaces():
    cache = ConnectionCache()
    cache.store_page(None, _page(_entry("a", 1), has_next_page=True), append=False)
    state = cache.store_page(None, _page(_entry("b", 2)), append=True)
    assert state.ids == ["a", "b"]
    assert not state.has_next_page
    assert state.end_cursor == "c-b"

    state = cache.store_page(None, _page(_entry("c", 0)), append=False)
    assert state.ids == ["c"]


def test_cache_applies_transition_to_matching_connections_only():
    cache = ConnectionCache()
    cache.store_page(None, _page(_entry("a", 1)), append=False)
    cache.store_page({"tagsAny": ["sql"]}, _page(_entry("s", 1, tags=("sql",))), append=False)

    fresh = build_optimistic_entry(CREATE_FIELDS, now=NOW)
    snapshot = cache.snapshot()
    cache.apply(lambda state: insert_optimistic(state, fresh))
    assert cache.get(None).ids == [fresh.id, "a"]
    assert cache.get({"tagsAny": ["sql"]}).ids == ["s"]

    cache.rollback(snapshot, fresh.id)
    assert cache.get(None).ids == ["a"]


@pytest.mark.parametrize("filter", [None, {"q": "entry"}])
def test_track_creates_empty_connection(filter):
    cache = ConnectionCache()
    state = cache.track(filter)
    assert state.ids == []
    assert cache.get(filter) is state
