from datetime import datetime
from typing import Any

import strawberry

from learning_journal.agents import constants
from learning_journal.graphql.utils import format_timestamp

HabitFocus = strawberry.enum(constants.HabitFocus, description="What the habit plan optimises for")
HabitPlanStatus = strawberry.enum(constants.HabitPlanStatus)


def _iso(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


@strawberry.type
class TagMinutes:
    tag: str
    minutes: int


@strawberry.type
class DailyMinutes:
    day: str = strawberry.field(description="UTC day, YYYY-MM-DD")
    minutes: int


@strawberry.type
class WeeklySummary:
    text: str
    retry_at: str | None = strawberry.field(
        default=None, description="Set while the AI coach is cooling down after a quota error"
    )


@strawberry.type
class LearningSummary:
    total_minutes: int
    total_entries: int
    minutes_by_tag: list[TagMinutes]
    daily_minutes: list[DailyMinutes]
    current_streak: int
    longest_streak: int
    logs: strawberry.Private[list[Any]]

    @strawberry.field(description="AI-written summary of the range; only generated when selected")
    async def summary(self, info: strawberry.Info) -> WeeklySummary:
        result = await info.context.coach.generate_weekly_summary(self.logs)
        return WeeklySummary(text=result.text, retry_at=_iso(result.retry_at))


@strawberry.type
class HabitPlan:
    status: HabitPlanStatus
    focus: HabitFocus
    plan: str | None = None
    message: str | None = None
    retry_at: str | None = None


@strawberry.type
class HabitFocusOption:
    value: HabitFocus
    label: str
    description: str
