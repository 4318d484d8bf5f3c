import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from learning_journal.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LearningLog(Base):
    __tablename__ = "learning_logs"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    reflection = Column(Text, nullable=False)
    time_spent = Column(Integer, nullable=False)
    source_url = Column(Text, nullable=True)
    # Assigned in Python so the value is known after flush without a refresh
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tag_rows = relationship(
        "LearningLogTag",
        back_populates="learning_log",
        cascade="all, delete-orphan",
        order_by="LearningLogTag.position",
        lazy="selectin",
    )

    __table_args__ = (
        # Canonical ordering key for seek pagination
        Index("ix_learning_logs_created_at_id", "created_at", "id"),
    )

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values: list[str]) -> None:
        self.tag_rows = [
            LearningLogTag(tag=value, position=index) for index, value in enumerate(values)
        ]

    def __repr__(self):
        return f"<LearningLog(id={self.id}, title='{self.title}', created_at={self.created_at})>"


class LearningLogTag(Base):
    __tablename__ = "learning_log_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    log_id = Column(
        String(36),
        ForeignKey("learning_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag = Column(String(255), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    learning_log = relationship("LearningLog", back_populates="tag_rows")

    def __repr__(self):
        return f"<LearningLogTag(log_id={self.log_id}, tag='{self.tag}')>"
