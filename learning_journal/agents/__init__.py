from .coach import CoachService, HabitPlanResult, SummaryResult
from .constants import HABIT_FOCUS_OPTIONS, HabitFocus, HabitPlanStatus
from .utils import QuotaCooldown

__all__ = [
    "CoachService",
    "HabitPlanResult",
    "SummaryResult",
    "HABIT_FOCUS_OPTIONS",
    "HabitFocus",
    "HabitPlanStatus",
    "QuotaCooldown",
]
