import logging
from typing import Annotated

import strawberry
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext
from strawberry.types import Info as StrawberryInfo

from learning_journal.agents.coach import CoachService
from learning_journal.database import get_async_db

from .common import Node
from .extensions.error_handler import CustomErrorHandler, is_client_error
from .relay import get_node
from .resolvers.coach import get_habit_plan, get_learning_summary, list_habit_focus_options
from .resolvers.learning_log import (
    create_learning_log,
    delete_learning_log,
    list_learning_logs,
    update_learning_log,
)
from .types.coach import HabitFocus, HabitFocusOption, HabitPlan, LearningSummary
from .types.learning_log import (
    CreateLearningLogInput,
    CreateLearningLogPayload,
    DeleteLearningLogInput,
    DeleteLearningLogPayload,
    LearningLogConnection,
    LearningLogFilter,
    UpdateLearningLogInput,
    UpdateLearningLogPayload,
)

logger = logging.getLogger(__name__)


# --- Custom Context ---
# Carries request-scoped objects: the DB session and the coach service
class Context(BaseContext):
    def __init__(self, db: AsyncSession, coach: CoachService):
        super().__init__()
        self.db = db
        self.coach = coach


def get_coach_service(request: Request) -> CoachService:
    """The process-wide coach service created in the app lifespan."""
    return request.app.state.coach_service


async def get_context(
    db: AsyncSession = Depends(get_async_db),
    coach: CoachService = Depends(get_coach_service),
) -> Context:
    logger.debug("Creating GraphQL context")
    return Context(db=db, coach=coach)


# --- Root Query/Mutation Definitions ---


@strawberry.type
class Query:
    # Node field for Relay
    @strawberry.field
    async def node(self, info: StrawberryInfo, id: strawberry.ID) -> Node | None:
        """Fetches an object given its globally unique ID."""
        return await get_node(info=info, global_id=id)

    @strawberry.field
    async def learning_logs(
        self,
        info: StrawberryInfo,
        first: int,
        after: str | None = None,
        filter: LearningLogFilter | None = None,
    ) -> LearningLogConnection:
        """Lists learning logs newest first, paginated forward with `after`."""
        return await list_learning_logs(info=info, first=first, after=after, filter=filter)

    @strawberry.field
    async def learning_summary(
        self,
        info: StrawberryInfo,
        from_: Annotated[str | None, strawberry.argument(name="from")] = None,
        to: str | None = None,
    ) -> LearningSummary:
        """Time and streak analytics for a date range."""
        return await get_learning_summary(info=info, from_=from_, to=to)

    @strawberry.field
    async def habit_plan(
        self, info: StrawberryInfo, focus: HabitFocus = HabitFocus.CONSISTENCY
    ) -> HabitPlan:
        """A three-habit plan built from the last 30 days of logs."""
        return await get_habit_plan(info=info, focus=focus)

    @strawberry.field
    def habit_focus_options(self) -> list[HabitFocusOption]:
        return list_habit_focus_options()


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_learning_log(
        self, info: StrawberryInfo, input: CreateLearningLogInput
    ) -> CreateLearningLogPayload:
        return await create_learning_log(info=info, input=input)

    @strawberry.mutation
    async def update_learning_log(
        self, info: StrawberryInfo, input: UpdateLearningLogInput
    ) -> UpdateLearningLogPayload:
        """Changes only the fields present in the input."""
        return await update_learning_log(info=info, input=input)

    @strawberry.mutation
    async def delete_learning_log(
        self, info: StrawberryInfo, input: DeleteLearningLogInput
    ) -> DeleteLearningLogPayload:
        return await delete_learning_log(info=info, input=input)


# --- Schema Definition ---
class LearningJournalSchema(strawberry.Schema):
    def process_errors(self, errors, execution_context=None):
        # Application errors were already logged at WARNING by CustomErrorHandler
        unexpected = [error for error in errors if not is_client_error(error)]
        super().process_errors(unexpected, execution_context)


schema = LearningJournalSchema(
    query=Query,
    mutation=Mutation,
    extensions=[CustomErrorHandler],
)
