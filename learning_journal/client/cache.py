"""Client-side connection cache for learning logs.

Each tracked connection is an immutable ``ConnectionState`` keyed by its
filter value. Transitions are pure functions returning a new state:

* ``insert_optimistic``: splice a provisional entry at its canonical position
* ``reconcile``: swap the provisional entry for the server's record
* ``rollback``: restore one entry to how it was in a snapshot
* ``apply_update`` / ``remove_entry``: edits and deletes

An entry is only placed into connections whose filter it satisfies.
"""

import json
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from learning_journal.services.filters import LearningLogFilter, as_utc, matches_filter

TEMP_ID_PREFIX = "client:new-log:"


def new_temp_id() -> str:
    # Server ids are base64 global IDs, which never contain ':'
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(entry_id: str) -> bool:
    return entry_id.startswith(TEMP_ID_PREFIX)


def _parse_timestamp(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


@dataclass(frozen=True)
class LogEntry:
    """A learning log as the client sees it: wire fields, parsed timestamp."""

    id: str
    title: str
    reflection: str
    tags: tuple[str, ...]
    time_spent: int
    source_url: str | None
    created_at: datetime

    @property
    def is_optimistic(self) -> bool:
        return is_temp_id(self.id)

    @classmethod
    def from_wire(cls, node: Mapping[str, Any]) -> "LogEntry":
        return cls(
            id=node["id"],
            title=node["title"],
            reflection=node["reflection"],
            tags=tuple(node["tags"]),
            time_spent=node["timeSpent"],
            source_url=node.get("sourceUrl"),
            created_at=_parse_timestamp(node["createdAt"]),
        )

    def with_fields(self, fields: Mapping[str, Any]) -> "LogEntry":
        """Applies wire-named fields (as sent in an update input) to a copy."""
        changes: dict[str, Any] = {}
        if "title" in fields:
            changes["title"] = fields["title"]
        if "reflection" in fields:
            changes["reflection"] = fields["reflection"]
        if "tags" in fields:
            changes["tags"] = tuple(fields["tags"])
        if "timeSpent" in fields:
            changes["time_spent"] = fields["timeSpent"]
        if "sourceUrl" in fields:
            changes["source_url"] = fields["sourceUrl"] or None
        return replace(self, **changes)


def build_optimistic_entry(fields: Mapping[str, Any], now: datetime | None = None) -> LogEntry:
    """Provisional entry for a create input, stamped with a local time."""
    return LogEntry(
        id=new_temp_id(),
        title=fields["title"],
        reflection=fields["reflection"],
        tags=tuple(fields["tags"]),
        time_spent=fields["timeSpent"],
        source_url=fields.get("sourceUrl") or None,
        created_at=now or datetime.now(UTC),
    )


def _normalize_filter(filter: Mapping[str, Any] | None) -> dict[str, Any]:
    if not filter:
        return {}
    normalized: dict[str, Any] = {}
    for key, value in filter.items():
        if value is None or value == "" or value == []:
            continue
        normalized[key] = sorted(value) if isinstance(value, list | tuple) else value
    return normalized


def connection_key(filter: Mapping[str, Any] | None) -> str:
    """Stable identity of a connection: its filter value as canonical JSON."""
    return json.dumps(_normalize_filter(filter), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class CachedEdge:
    entry: LogEntry
    cursor: str | None = None  # None for provisional entries


@dataclass(frozen=True)
class ConnectionState:
    filter: Mapping[str, Any] | None = None
    edges: tuple[CachedEdge, ...] = ()
    has_next_page: bool = False
    end_cursor: str | None = None

    @property
    def entries(self) -> list[LogEntry]:
        return [edge.entry for edge in self.edges]

    @property
    def ids(self) -> list[str]:
        return [edge.entry.id for edge in self.edges]

    def find(self, entry_id: str) -> CachedEdge | None:
        for edge in self.edges:
            if edge.entry.id == entry_id:
                return edge
        return None

    def accepts(self, entry: LogEntry) -> bool:
        return matches_filter(LearningLogFilter.from_wire(self.filter), entry)


def _sort_key(entry: LogEntry) -> tuple[datetime, str]:
    return entry.created_at, entry.id


def _without(edges: tuple[CachedEdge, ...], *entry_ids: str) -> tuple[CachedEdge, ...]:
    return tuple(edge for edge in edges if edge.entry.id not in entry_ids)


def _insert_sorted(state: ConnectionState, edge: CachedEdge) -> ConnectionState:
    """Places an edge by (createdAt, id) descending within the loaded window."""
    edges = list(state.edges)
    key = _sort_key(edge.entry)
    index = len(edges)
    for position, existing in enumerate(edges):
        if key > _sort_key(existing.entry):
            index = position
            break
    if index == len(edges) and state.has_next_page:
        # Sorts after the loaded window; it will arrive with a later page
        return state
    edges.insert(index, edge)
    return replace(state, edges=tuple(edges))


def insert_optimistic(state: ConnectionState, entry: LogEntry) -> ConnectionState:
    if not state.accepts(entry):
        return state
    return _insert_sorted(
        replace(state, edges=_without(state.edges, entry.id)), CachedEdge(entry=entry)
    )


def reconcile(
    state: ConnectionState, temp_id: str, entry: LogEntry, cursor: str | None = None
) -> ConnectionState:
    """Replaces the provisional entry with the authoritative one."""
    state = replace(state, edges=_without(state.edges, temp_id, entry.id))
    if not state.accepts(entry):
        return state
    return _insert_sorted(state, CachedEdge(entry=entry, cursor=cursor))


def apply_update(state: ConnectionState, entry: LogEntry) -> ConnectionState:
    """Updates an entry in place; drops it if it no longer satisfies the filter."""
    existing = state.find(entry.id)
    if existing is None:
        return state
    if not state.accepts(entry):
        return remove_entry(state, entry.id)
    edges = tuple(
        replace(edge, entry=entry) if edge.entry.id == entry.id else edge for edge in state.edges
    )
    return replace(state, edges=edges)


def remove_entry(state: ConnectionState, entry_id: str) -> ConnectionState:
    return replace(state, edges=_without(state.edges, entry_id))


def rollback(state: ConnectionState, snapshot: ConnectionState, entry_id: str) -> ConnectionState:
    """Restores one entry to its snapshot position and content, keeping other changes."""
    state = remove_entry(state, entry_id)
    previous = snapshot.find(entry_id)
    if previous is None:
        return state
    # The entry was loaded before, so it goes back even past the window edge
    restored = _insert_sorted(replace(state, has_next_page=False), previous)
    return replace(state, edges=restored.edges)


@dataclass
class ConnectionCache:
    """All tracked connections, keyed by ``connection_key(filter)``."""

    connections: dict[str, ConnectionState] = field(default_factory=dict)

    def get(self, filter: Mapping[str, Any] | None = None) -> ConnectionState | None:
        return self.connections.get(connection_key(filter))

    def track(self, filter: Mapping[str, Any] | None = None) -> ConnectionState:
        key = connection_key(filter)
        if key not in self.connections:
            self.connections[key] = ConnectionState(filter=_normalize_filter(filter) or None)
        return self.connections[key]

    def store_page(
        self, filter: Mapping[str, Any] | None, connection: Mapping[str, Any], *, append: bool
    ) -> ConnectionState:
        """Merges a `learningLogs` response into the cache."""
        state = self.track(filter)
        page_edges = tuple(
            CachedEdge(entry=LogEntry.from_wire(edge["node"]), cursor=edge["cursor"])
            for edge in connection["edges"]
        )
        page_ids = {edge.entry.id for edge in page_edges}
        kept = tuple(edge for edge in state.edges if edge.entry.id not in page_ids) if append else ()
        page_info = connection["pageInfo"]
        state = replace(
            state,
            edges=kept + page_edges,
            has_next_page=page_info["hasNextPage"],
            end_cursor=page_info["endCursor"] or state.end_cursor,
        )
        self.connections[connection_key(filter)] = state
        return state

    def snapshot(self) -> dict[str, ConnectionState]:
        # States are immutable, a shallow copy is a full snapshot
        return dict(self.connections)

    def apply(self, transition: Callable[[ConnectionState], ConnectionState]) -> None:
        for key, state in list(self.connections.items()):
            self.connections[key] = transition(state)

    def rollback(self, snapshot: Mapping[str, ConnectionState], entry_id: str) -> None:
        for key, state in list(self.connections.items()):
            previous = snapshot.get(key)
            if previous is None:
                self.connections[key] = remove_entry(state, entry_id)
            else:
                self.connections[key] = rollback(state, previous, entry_id)
