"""Learning log connection resolver and mutation handlers."""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from learning_journal import crud
from learning_journal.core.exceptions import (
    InvalidPageSizeError,
    NotFoundError,
    UnsupportedTypeError,
    ValidationError,
)
from learning_journal.graphql.common import NodeType, resolve_global_id
from learning_journal.graphql.utils import decode_cursor, encode_cursor
from learning_journal.models.learning_log import LearningLog
from learning_journal.schemas.learning_log import (
    MUTABLE_FIELDS,
    LearningLogCreate,
    LearningLogUpdate,
    to_field_errors,
)
from learning_journal.services.filters import LearningLogFilter, compile_filter, normalize_filter

logger = logging.getLogger(__name__)

EMPTY_UPDATE_MESSAGE = "Provide at least one field to update"


@dataclass
class PageInfo:
    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None


@dataclass
class Edge:
    node: LearningLog
    cursor: str


@dataclass
class Connection:
    edges: list[Edge] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)


async def list_entries(
    db: AsyncSession,
    first: int,
    after: str | None = None,
    filter: LearningLogFilter | None = None,
) -> Connection:
    """Returns one page of learning logs, newest first, positioned after ``after``."""
    if isinstance(first, bool) or not isinstance(first, int) or first < 1:
        raise InvalidPageSizeError()

    # Argument errors surface to the caller; only storage failures degrade
    after_id = decode_cursor(after) if after is not None else None
    conditions = compile_filter(normalize_filter(filter))

    try:
        cursor_data = None
        if after_id is not None:
            cursor_data = await crud.learning_log.aget_seek_key(db, after_id)
            if cursor_data is None:
                logger.info(
                    "Cursor does not point at an existing row; returning an empty page",
                    extra={"props": {"after": after}},
                )
                return Connection()

        rows = await crud.learning_log.get_multi_paginated_async(
            db,
            limit=first + 1,  # Fetch one extra to check for next page
            cursor_data=cursor_data,
            conditions=conditions,
        )
        has_previous_page = False
        if cursor_data is not None:
            has_previous_page = await crud.learning_log.aexists_at_or_before(
                db, cursor_data=cursor_data, conditions=conditions
            )
    except (OperationalError, InterfaceError) as e:
        logger.error(f"Storage unavailable while listing learning logs: {e}", exc_info=True)
        return Connection()

    has_next_page = len(rows) > first
    edges = [Edge(node=row, cursor=encode_cursor(row.id)) for row in rows[:first]]

    return Connection(
        edges=edges,
        page_info=PageInfo(
            has_next_page=has_next_page,
            has_previous_page=has_previous_page,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        ),
    )


def _learning_log_pk(global_id: str) -> str:
    resolved = resolve_global_id(global_id)
    if resolved.node_type is not NodeType.LEARNING_LOG:
        raise UnsupportedTypeError(f"Expected a LearningLog ID, got type '{resolved.type_name}'")
    return resolved.storage_id


async def create_entry(db: AsyncSession, fields: dict[str, Any]) -> LearningLog:
    """Validates and inserts a new learning log. Commits before returning."""
    try:
        obj_in = LearningLogCreate(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(to_field_errors(exc)) from exc

    db_obj = await crud.learning_log.acreate(db, obj_in=obj_in)
    await db.commit()
    logger.info(
        f"Created learning log {db_obj.id}",
        extra={"props": {"log_id": db_obj.id, "tags": db_obj.tags}},
    )
    return db_obj


async def update_entry(db: AsyncSession, global_id: str, fields: dict[str, Any]) -> LearningLog:
    """Applies a partial update. ``fields`` holds only the keys the caller supplied."""
    present = {key: value for key, value in fields.items() if key in MUTABLE_FIELDS}
    if not present:
        raise ValidationError({"title": EMPTY_UPDATE_MESSAGE})
    try:
        obj_in = LearningLogUpdate(**present)
    except PydanticValidationError as exc:
        raise ValidationError(to_field_errors(exc)) from exc

    pk = _learning_log_pk(global_id)
    db_obj = await crud.learning_log.aget(db, pk)
    if db_obj is None:
        raise NotFoundError(f"Learning log {global_id} not found")

    db_obj = await crud.learning_log.aupdate(db, db_obj=db_obj, obj_in=obj_in)
    await db.commit()
    logger.info(
        f"Updated learning log {db_obj.id}",
        extra={"props": {"log_id": db_obj.id, "fields": sorted(present)}},
    )
    return db_obj


async def delete_entry(db: AsyncSession, global_id: str) -> str:
    """Deletes a learning log permanently and returns the global ID it was addressed by."""
    pk = _learning_log_pk(global_id)
    db_obj = await crud.learning_log.aget(db, pk)
    if db_obj is None:
        raise NotFoundError(f"Learning log {global_id} not found")

    await crud.learning_log.aremove(db, db_obj=db_obj)
    await db.commit()
    logger.info(f"Deleted learning log {pk}", extra={"props": {"log_id": pk}})
    return global_id
