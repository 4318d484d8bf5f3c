from .learning_log import (
    LearningLogCreate,
    LearningLogUpdate,
    to_field_errors,
)

__all__ = [
    "LearningLogCreate",
    "LearningLogUpdate",
    "to_field_errors",
]
