"""Export GraphQL ID and cursor helpers.

The schema itself lives in ``learning_journal.graphql.schema`` and is imported
from there by the application.
"""

# Relay utilities
from .common import (
    GlobalId,
    Node,
    NodeType,
    from_global_id,
    resolve_global_id,
    to_global_id,
)

# General GraphQL utilities
from .utils import decode_cursor, encode_cursor, format_timestamp

__all__ = [
    # Relay utilities
    "GlobalId",
    "Node",
    "NodeType",
    "from_global_id",
    "resolve_global_id",
    "to_global_id",
    # General utilities
    "decode_cursor",
    "encode_cursor",
    "format_timestamp",
]
