import base64
import binascii
from dataclasses import dataclass
from enum import Enum

import strawberry

from learning_journal.core.exceptions import MalformedIdError

GLOBAL_ID_SEPARATOR = ":"


class NodeType(Enum):
    """Enum for identifying different node types in Global IDs."""

    LEARNING_LOG = "LearningLog"


# --- Node Interface ---
@strawberry.interface
class Node:
    """An object with an ID, conforming to Relay Node interface."""

    id: strawberry.ID


@dataclass(frozen=True)
class GlobalId:
    """A decoded global ID. ``node_type`` is None when the type tag is not known."""

    type_name: str
    storage_id: str
    node_type: NodeType | None = None


# --- Global ID Functions ---


def to_global_id(type_name: str | NodeType, id: str | int) -> strawberry.ID:
    """Encodes a type name and ID into a global ID string."""
    if isinstance(type_name, NodeType):
        type_name = type_name.value
    id = str(id)
    if not type_name or not id:
        raise ValueError("Global ID parts must be non-empty")
    if GLOBAL_ID_SEPARATOR in type_name:
        raise ValueError(f"Type name may not contain '{GLOBAL_ID_SEPARATOR}'")
    combined = f"{type_name}{GLOBAL_ID_SEPARATOR}{id}"
    return strawberry.ID(base64.b64encode(combined.encode("utf-8")).decode("ascii"))


def from_global_id(global_id: str) -> tuple[str, str]:
    """Decodes a global ID string into a type name and ID.

    Raises MalformedIdError when the value is not base64 encoded UTF-8 or
    either part is empty.
    """
    try:
        decoded_str = base64.b64decode(global_id.encode("ascii"), validate=True).decode("utf-8")
    except (ValueError, binascii.Error, UnicodeError):
        raise MalformedIdError(f"Malformed global ID: {global_id}") from None

    type_name, sep, id_str = decoded_str.partition(GLOBAL_ID_SEPARATOR)
    if not sep or not type_name or not id_str:
        raise MalformedIdError(f"Malformed global ID: {global_id}")
    return type_name, id_str


def resolve_global_id(global_id: str) -> GlobalId:
    """Decodes a global ID and resolves its type tag against the known node types.

    An unknown tag is not an error here; callers decide how to treat it.
    """
    type_name, id_str = from_global_id(global_id)
    try:
        node_type = NodeType(type_name)
    except ValueError:
        node_type = None
    return GlobalId(type_name=type_name, storage_id=id_str, node_type=node_type)
