from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.types import Info

from learning_journal.agents.coach import CoachService
from learning_journal.agents.constants import HABIT_FOCUS_OPTIONS, HabitFocus
from learning_journal.graphql.types.coach import (
    DailyMinutes,
    HabitFocusOption,
    HabitPlan,
    LearningSummary,
    TagMinutes,
)
from learning_journal.graphql.utils import format_timestamp
from learning_journal.services import analytics


# --- learningSummary Query --- #
async def get_learning_summary(
    info: Info, from_: str | None = None, to: str | None = None
) -> LearningSummary:
    """Aggregates logs in [from, to]; the `to` day is included in full."""
    db: AsyncSession = info.context.db
    logs = await analytics.fetch_logs_range(db, from_=from_, to=to)
    current, longest = analytics.compute_streaks(
        analytics.normalize_day(log.created_at) for log in logs
    )
    return LearningSummary(
        total_minutes=analytics.sum_minutes(logs),
        total_entries=len(logs),
        minutes_by_tag=[
            TagMinutes(tag=item.tag, minutes=item.minutes)
            for item in analytics.minutes_by_tag(logs)
        ],
        daily_minutes=[
            DailyMinutes(day=item.day, minutes=item.minutes)
            for item in analytics.group_daily_minutes(logs)
        ],
        current_streak=current,
        longest_streak=longest,
        logs=logs,
    )


# --- habitPlan Query --- #
async def get_habit_plan(info: Info, focus: HabitFocus = HabitFocus.CONSISTENCY) -> HabitPlan:
    db: AsyncSession = info.context.db
    coach: CoachService = info.context.coach
    logs = await analytics.fetch_habit_coach_logs(db)
    result = await coach.request_habit_plan(logs, focus)
    return HabitPlan(
        status=result.status,
        focus=result.focus,
        plan=result.plan,
        message=result.message,
        retry_at=format_timestamp(result.retry_at) if result.retry_at else None,
    )


# --- habitFocusOptions Query --- #
def list_habit_focus_options() -> list[HabitFocusOption]:
    return [
        HabitFocusOption(value=option.focus, label=option.label, description=option.description)
        for option in HABIT_FOCUS_OPTIONS
    ]
