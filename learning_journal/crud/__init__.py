from learning_journal.crud.base import CRUDBase
from learning_journal.crud.learning_log import CRUDLearningLog, learning_log

__all__ = [
    "CRUDBase",
    "CRUDLearningLog",
    "learning_log",
]
