import logging

import strawberry
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.types import Info

from learning_journal.graphql.types.learning_log import (
    CreateLearningLogInput,
    CreateLearningLogPayload,
    DeleteLearningLogInput,
    DeleteLearningLogPayload,
    LearningLog as LearningLogGQL,
    LearningLogConnection,
    LearningLogEdge,
    LearningLogFilter,
    PageInfo,
    UpdateLearningLogInput,
    UpdateLearningLogPayload,
)
from learning_journal.services import learning_log_service

logger = logging.getLogger(__name__)


# --- learningLogs Query --- #
async def list_learning_logs(
    info: Info,
    first: int,
    after: str | None = None,  # Opaque cursor
    filter: LearningLogFilter | None = None,
) -> LearningLogConnection:
    """Resolver to list learning logs, newest first."""
    db: AsyncSession = info.context.db
    connection = await learning_log_service.list_entries(
        db,
        first=first,
        after=after,
        filter=filter.to_filter() if filter is not None else None,
    )

    edges = [
        LearningLogEdge(node=LearningLogGQL.from_orm(edge.node), cursor=edge.cursor)
        for edge in connection.edges
    ]
    page_info = connection.page_info
    return LearningLogConnection(
        edges=edges,
        page_info=PageInfo(
            has_next_page=page_info.has_next_page,
            has_previous_page=page_info.has_previous_page,
            start_cursor=page_info.start_cursor,
            end_cursor=page_info.end_cursor,
        ),
    )


# --- createLearningLog Mutation --- #
async def create_learning_log(info: Info, input: CreateLearningLogInput) -> CreateLearningLogPayload:
    db: AsyncSession = info.context.db
    created = await learning_log_service.create_entry(db, input.to_fields())
    return CreateLearningLogPayload(log=LearningLogGQL.from_orm(created))


# --- updateLearningLog Mutation --- #
async def update_learning_log(info: Info, input: UpdateLearningLogInput) -> UpdateLearningLogPayload:
    db: AsyncSession = info.context.db
    updated = await learning_log_service.update_entry(db, input.id, input.to_fields())
    return UpdateLearningLogPayload(log=LearningLogGQL.from_orm(updated))


# --- deleteLearningLog Mutation --- #
async def delete_learning_log(info: Info, input: DeleteLearningLogInput) -> DeleteLearningLogPayload:
    db: AsyncSession = info.context.db
    deleted_id = await learning_log_service.delete_entry(db, input.id)
    return DeleteLearningLogPayload(deleted_id=strawberry.ID(deleted_id))
