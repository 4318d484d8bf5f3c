from .coach import (
    DailyMinutes,
    HabitFocus,
    HabitFocusOption,
    HabitPlan,
    HabitPlanStatus,
    LearningSummary,
    TagMinutes,
    WeeklySummary,
)
from .learning_log import (
    CreateLearningLogInput,
    CreateLearningLogPayload,
    DeleteLearningLogInput,
    DeleteLearningLogPayload,
    LearningLog,
    LearningLogConnection,
    LearningLogEdge,
    LearningLogFilter,
    PageInfo,
    UpdateLearningLogInput,
    UpdateLearningLogPayload,
)

__all__ = [
    "DailyMinutes",
    "HabitFocus",
    "HabitFocusOption",
    "HabitPlan",
    "HabitPlanStatus",
    "LearningSummary",
    "TagMinutes",
    "WeeklySummary",
    "CreateLearningLogInput",
    "CreateLearningLogPayload",
    "DeleteLearningLogInput",
    "DeleteLearningLogPayload",
    "LearningLog",
    "LearningLogConnection",
    "LearningLogEdge",
    "LearningLogFilter",
    "PageInfo",
    "UpdateLearningLogInput",
    "UpdateLearningLogPayload",
]
