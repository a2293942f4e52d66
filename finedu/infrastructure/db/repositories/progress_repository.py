"""
Lesson Progress Repository
Upsert per (user, lesson_day)
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import LessonProgress
from finedu.infrastructure.db.models import LessonProgressModel


class LessonProgressRepository:
    """Repository for LessonProgress"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def latest(self, user_id: str) -> Optional[LessonProgress]:
        result = await self.session.execute(
            select(LessonProgressModel)
            .where(LessonProgressModel.user_id == user_id)
            .order_by(LessonProgressModel.completed_at.desc(), LessonProgressModel.id.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_for_user(self, user_id: str) -> List[LessonProgress]:
        """Progress rows, newest completion first"""
        result = await self.session.execute(
            select(LessonProgressModel)
            .where(LessonProgressModel.user_id == user_id)
            .order_by(LessonProgressModel.completed_at.desc(), LessonProgressModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(LessonProgressModel.id)))
        return int(result.scalar() or 0)

    async def count_by_user(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(LessonProgressModel.user_id, func.count(LessonProgressModel.id))
            .group_by(LessonProgressModel.user_id)
        )
        return {user_id: int(total) for user_id, total in result.all()}

    async def upsert(
        self,
        user_id: str,
        lesson_day: int,
        quiz_score: int,
        streak: int,
        completed_at: datetime,
    ) -> LessonProgress:
        result = await self.session.execute(
            select(LessonProgressModel).where(
                LessonProgressModel.user_id == user_id,
                LessonProgressModel.lesson_day == lesson_day,
            )
        )
        model = result.scalar_one_or_none()
        if model is None:
            model = LessonProgressModel(user_id=user_id, lesson_day=lesson_day)
            self.session.add(model)

        model.quiz_score = quiz_score
        model.streak = streak
        model.completed_at = completed_at

        await self.session.flush()
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: LessonProgressModel) -> LessonProgress:
        return LessonProgress(
            id=model.id,
            user_id=model.user_id,
            lesson_day=model.lesson_day,
            quiz_score=model.quiz_score,
            streak=model.streak,
            completed_at=model.completed_at,
        )
