"""Optimistic mutations and paginated loading against the GraphQL API.

Each mutation moves through ``idle -> optimistic -> reconciled | rolled_back``.
Mutations are not coordinated with each other: the last response wins.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .cache import (
    ConnectionCache,
    ConnectionState,
    LogEntry,
    apply_update,
    build_optimistic_entry,
    connection_key,
    insert_optimistic,
    reconcile,
    remove_entry,
)
from .graphql_client import GraphQLClient, GraphQLClientError, GraphQLResponseError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class MutationFailedError(Exception):
    """A mutation failed for a reason other than field validation."""

    def __init__(self, message, codes=None):
        super().__init__(message)
        self.codes = codes or []


class PaginationInFlightError(Exception):
    """A next-page fetch for the same connection is still running."""


class MutationStatus(str, Enum):
    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    RECONCILED = "reconciled"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationResult:
    status: MutationStatus
    entry: LogEntry | None = None
    deleted_id: str | None = None
    field_errors: dict[str, str] | None = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.RECONCILED


def _upsert(state: ConnectionState, entry: LogEntry) -> ConnectionState:
    if state.find(entry.id) is not None:
        return apply_update(state, entry)
    return insert_optimistic(state, entry)


class OptimisticMutationRunner:
    """Drives the connection cache through create, update and delete round trips."""

    def __init__(self, client: GraphQLClient, cache: ConnectionCache | None = None):
        self.client = client
        self.cache = cache or ConnectionCache()
        self._loading: set[str] = set()

    # --- Loading --- #

    async def load(
        self, filter: dict[str, Any] | None = None, first: int = DEFAULT_PAGE_SIZE
    ) -> ConnectionState:
        """Fetches the first page of a connection, replacing anything cached for it."""
        connection = await self.client.learning_logs(first=first, filter=filter)
        return self.cache.store_page(filter, connection, append=False)

    async def load_next(
        self, filter: dict[str, Any] | None = None, first: int = DEFAULT_PAGE_SIZE
    ) -> ConnectionState:
        state = self.cache.track(filter)
        key = connection_key(filter)
        if key in self._loading:
            raise PaginationInFlightError("A page for this connection is already loading")
        if state.edges and not state.has_next_page:
            return state

        self._loading.add(key)
        try:
            connection = await self.client.learning_logs(
                first=first, after=state.end_cursor, filter=filter
            )
        finally:
            self._loading.discard(key)
        return self.cache.store_page(filter, connection, append=True)

    # --- Mutations --- #

    async def create(self, fields: dict[str, Any], now: datetime | None = None) -> MutationResult:
        optimistic = build_optimistic_entry(fields, now=now)
        snapshot = self.cache.snapshot()
        self.cache.apply(lambda state: insert_optimistic(state, optimistic))

        try:
            node = await self.client.create_learning_log(fields)
        except (GraphQLResponseError, GraphQLClientError) as e:
            return self._fail(e, snapshot, optimistic.id)

        created = LogEntry.from_wire(node)
        self.cache.apply(lambda state: reconcile(state, optimistic.id, created))
        logger.debug(f"Reconciled optimistic entry {optimistic.id} as {created.id}")
        return MutationResult(status=MutationStatus.RECONCILED, entry=created)

    async def update(self, entry_id: str, fields: dict[str, Any]) -> MutationResult:
        snapshot = self.cache.snapshot()
        current = self._find(entry_id)
        if current is not None:
            edited = current.with_fields(fields)
            self.cache.apply(lambda state: apply_update(state, edited))

        try:
            node = await self.client.update_learning_log(entry_id, fields)
        except (GraphQLResponseError, GraphQLClientError) as e:
            return self._fail(e, snapshot, entry_id)

        updated = LogEntry.from_wire(node)
        self.cache.apply(lambda state: _upsert(state, updated))
        return MutationResult(status=MutationStatus.RECONCILED, entry=updated)

    async def delete(self, entry_id: str) -> MutationResult:
        snapshot = self.cache.snapshot()
        self.cache.apply(lambda state: remove_entry(state, entry_id))

        try:
            deleted_id = await self.client.delete_learning_log(entry_id)
        except (GraphQLResponseError, GraphQLClientError) as e:
            return self._fail(e, snapshot, entry_id)

        return MutationResult(status=MutationStatus.RECONCILED, deleted_id=deleted_id)

    def _find(self, entry_id: str) -> LogEntry | None:
        for state in self.cache.connections.values():
            edge = state.find(entry_id)
            if edge is not None:
                return edge.entry
        return None

    def _fail(
        self,
        error: GraphQLResponseError | GraphQLClientError,
        snapshot: dict[str, ConnectionState],
        entry_id: str,
    ) -> MutationResult:
        """Rolls the entry back; validation errors are returned, anything else raised."""
        self.cache.rollback(snapshot, entry_id)
        if isinstance(error, GraphQLResponseError):
            fields = error.validation_fields
            if fields is not None:
                logger.info(f"Mutation rejected with field errors: {sorted(fields)}")
                return MutationResult(status=MutationStatus.ROLLED_BACK, field_errors=fields)
            raise MutationFailedError(str(error), codes=error.codes) from error
        raise MutationFailedError(str(error)) from error
