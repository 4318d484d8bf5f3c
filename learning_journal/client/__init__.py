"""Python client for the learning journal API with an optimistic connection cache."""

from .cache import ConnectionCache, ConnectionState, LogEntry, connection_key
from .graphql_client import GraphQLClient, GraphQLClientError, GraphQLResponseError
from .mutations import (
    MutationFailedError,
    MutationResult,
    MutationStatus,
    OptimisticMutationRunner,
    PaginationInFlightError,
)

__all__ = [
    "ConnectionCache",
    "ConnectionState",
    "GraphQLClient",
    "GraphQLClientError",
    "GraphQLResponseError",
    "LogEntry",
    "MutationFailedError",
    "MutationResult",
    "MutationStatus",
    "OptimisticMutationRunner",
    "PaginationInFlightError",
    "connection_key",
]
