"""Export database models for use throughout the application."""

from learning_journal.models.learning_log import LearningLog, LearningLogTag

__all__ = [
    "LearningLog",
    "LearningLogTag",
]
