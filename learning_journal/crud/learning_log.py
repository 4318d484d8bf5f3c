from datetime import datetime
from typing import Any

from sqlalchemy import and_, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learning_journal.crud.base import CRUDBase
from learning_journal.models.learning_log import LearningLog
from learning_journal.schemas.learning_log import LearningLogCreate, LearningLogUpdate


class CRUDLearningLog(CRUDBase[LearningLog, LearningLogCreate, LearningLogUpdate]):
    async def aget_seek_key(self, db: AsyncSession, id: str) -> tuple[datetime, str] | None:
        """Returns the (created_at, id) ordering key of a row, or None if it is gone."""
        stmt = select(self.model.created_at, self.model.id).filter(self.model.id == id)
        result = await db.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return row.created_at, row.id

    def _seek_condition(self, cursor_data: tuple[Any, Any], *, after: bool):
        primary_col = self.model.created_at
        secondary_col = self.model.id
        primary_cursor_val, secondary_cursor_val = cursor_data
        if after:
            # (created_at < c) OR (created_at = c AND id < cid)
            return or_(
                primary_col < primary_cursor_val,
                and_(primary_col == primary_cursor_val, secondary_col < secondary_cursor_val),
            )
        # Rows at or before the cursor row in descending order
        return or_(
            primary_col > primary_cursor_val,
            and_(primary_col == primary_cursor_val, secondary_col >= secondary_cursor_val),
        )

    async def get_multi_paginated_async(
        self,
        db: AsyncSession,
        *,
        limit: int = 10,
        cursor_data: tuple[Any, Any] | None = None,  # (created_at, id) of the cursor row
        conditions: list | None = None,
    ) -> list[LearningLog]:
        """Fetches learning logs with keyset pagination over (created_at, id)."""
        query = select(self.model)
        if conditions:
            query = query.filter(*conditions)

        if cursor_data is not None:
            query = query.filter(self._seek_condition(cursor_data, after=True))

        query = query.order_by(desc(self.model.created_at), desc(self.model.id)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def aexists_at_or_before(
        self,
        db: AsyncSession,
        *,
        cursor_data: tuple[Any, Any],
        conditions: list | None = None,
    ) -> bool:
        """True when a row matching the conditions sorts at or before the cursor row."""
        query = select(self.model.id).filter(self._seek_condition(cursor_data, after=False))
        if conditions:
            query = query.filter(*conditions)
        result = await db.execute(query.limit(1))
        return result.first() is not None

    async def get_multi_in_range(
        self,
        db: AsyncSession,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[LearningLog]:
        """Fetches logs with start <= created_at < end, newest first."""
        query = select(self.model)
        if start is not None:
            query = query.filter(self.model.created_at >= start)
        if end is not None:
            query = query.filter(self.model.created_at < end)
        query = query.order_by(desc(self.model.created_at), desc(self.model.id))
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


learning_log = CRUDLearningLog(LearningLog)
