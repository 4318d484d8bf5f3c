import logging
from collections.abc import Awaitable, Callable
from typing import Any

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.types import Info

from learning_journal import crud

from .common import Node, NodeType, resolve_global_id
from .types.learning_log import LearningLog as LearningLogGQL

logger = logging.getLogger(__name__)


# --- Node Fetching Logic ---

# Mapping from node type to a loader for the DB row and the GQL type it maps to
# Add all Node types here
NODE_MAP: dict[NodeType, tuple[Callable[[AsyncSession, str], Awaitable[Any]], type]] = {
    NodeType.LEARNING_LOG: (crud.learning_log.aget, LearningLogGQL),
}


async def get_node(info: Info, global_id: strawberry.ID) -> Node | None:
    """Fetches any Node object by its global ID.

    A malformed ID raises MalformedIdError; an unknown type or a missing row
    resolves to None.
    """
    resolved = resolve_global_id(global_id)
    if resolved.node_type is None or resolved.node_type not in NODE_MAP:
        logger.warning(
            f"Unknown type name '{resolved.type_name}' found in global ID '{global_id}'"
        )
        return None

    loader, gql_type = NODE_MAP[resolved.node_type]
    db: AsyncSession = info.context.db
    db_obj = await loader(db, resolved.storage_id)

    if db_obj is None:
        logger.debug(f"Node {resolved.type_name} with pk '{resolved.storage_id}' not found.")
        return None
    return gql_type.from_orm(db_obj)
