"""Aggregates over learning logs for the summary and habit coach views."""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from learning_journal import crud
from learning_journal.core.config import settings
from learning_journal.models.learning_log import LearningLog
from learning_journal.services.filters import as_utc, parse_date_bound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagMinutes:
    tag: str
    minutes: int


@dataclass(frozen=True)
class DailyMinutes:
    day: str  # YYYY-MM-DD (UTC)
    minutes: int


def _minutes(log: Any) -> int:
    value = getattr(log, "time_spent", 0)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return int(value)


def normalize_day(value: datetime | date | str) -> str:
    """Returns the UTC calendar day of a timestamp as YYYY-MM-DD."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        return as_utc(value).date().isoformat()
    return value.isoformat()


def sum_minutes(logs: Iterable[Any]) -> int:
    return sum(_minutes(log) for log in logs)


def minutes_by_tag(logs: Iterable[Any]) -> list[TagMinutes]:
    """Minutes per trimmed tag, most minutes first, ties by tag name."""
    totals: dict[str, int] = defaultdict(int)
    for log in logs:
        minutes = _minutes(log)
        for tag in log.tags or ():
            normalized = tag.strip() if tag else ""
            if not normalized:
                continue
            totals[normalized] += minutes
    return [
        TagMinutes(tag=tag, minutes=minutes)
        for tag, minutes in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    ]


def group_daily_minutes(logs: Iterable[Any]) -> list[DailyMinutes]:
    totals: dict[str, int] = defaultdict(int)
    for log in logs:
        totals[normalize_day(log.created_at)] += _minutes(log)
    return [DailyMinutes(day=day, minutes=totals[day]) for day in sorted(totals)]


def compute_streaks(days: Iterable[str], today: date | None = None) -> tuple[int, int]:
    """Returns (current, longest) runs of consecutive days.

    The current streak only counts if the last recorded day is today or yesterday.
    """
    sorted_days = sorted({date.fromisoformat(day) for day in days})
    if not sorted_days:
        return 0, 0

    current = 1
    longest = 1
    for previous, day in zip(sorted_days, sorted_days[1:]):
        if (day - previous).days == 1:
            current += 1
        else:
            longest = max(longest, current)
            current = 1
    longest = max(longest, current)

    today = today or datetime.now(UTC).date()
    if sorted_days[-1] not in (today, today - timedelta(days=1)):
        current = 0
    return current, longest


async def fetch_logs_range(
    db: AsyncSession, from_: str | None = None, to: str | None = None
) -> list[LearningLog]:
    """All logs with from <= created_at and created_at before the end of the ``to`` day."""
    start = parse_date_bound(from_, "from")
    end = parse_date_bound(to, "to")
    if end is not None:
        end = end + timedelta(days=1)
    try:
        return await crud.learning_log.get_multi_in_range(db, start=start, end=end)
    except (OperationalError, InterfaceError) as e:
        logger.warning(f"fetch_logs_range database unavailable, returning empty logs: {e}")
        return []


async def fetch_habit_coach_logs(db: AsyncSession, now: datetime | None = None) -> list[LearningLog]:
    """Recent logs the habit coach works from."""
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=settings.COACH_LOOKBACK_DAYS)
    try:
        return await crud.learning_log.get_multi_in_range(
            db, start=cutoff, limit=settings.COACH_MAX_LOGS
        )
    except (OperationalError, InterfaceError) as e:
        logger.warning(f"fetch_habit_coach_logs database unavailable, returning empty logs: {e}")
        return []
