"""
Lesson Routes
Daily lesson, quiz progress and streaks
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.api.dependencies import get_config_engine, get_current_user_id
from finedu.domain.models import Lesson
from finedu.domain.services.config_engine import ConfigEngine
from finedu.domain.services.lesson_engine import lesson_day_for, next_streak, progress_stats
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.repositories.progress_repository import LessonProgressRepository
from finedu.utils.time import now_utc_naive, to_iso_db, today_utc

logger = logging.getLogger(__name__)
router = APIRouter()


class QuizResponse(BaseModel):
    question: str
    options: List[str]
    correct_answer: int
    explanation: str


class LessonResponse(BaseModel):
    day: int
    title: str
    content: str
    quiz: QuizResponse


class ProgressRequest(BaseModel):
    lesson_day: int = Field(..., ge=1)
    quiz_score: int = Field(..., ge=0, le=100)


class ProgressEntry(BaseModel):
    lesson_day: int
    lesson_title: Optional[str] = None
    quiz_score: int
    streak: int
    completed_at: str


class ProgressStatsResponse(BaseModel):
    current_streak: int
    total_lessons_completed: int
    average_score: int


class ProgressResponse(BaseModel):
    progress: List[ProgressEntry]
    stats: ProgressStatsResponse


def _lesson_response(lesson: Lesson) -> LessonResponse:
    return LessonResponse(
        day=lesson.day,
        title=lesson.title,
        content=lesson.content,
        quiz=QuizResponse(
            question=lesson.quiz.question,
            options=list(lesson.quiz.options),
            correct_answer=lesson.quiz.correct_answer,
            explanation=lesson.quiz.explanation,
        ),
    )


@router.get("/today", response_model=LessonResponse)
async def get_today_lesson(config_engine: ConfigEngine = Depends(get_config_engine)):
    catalogue = config_engine.lessons
    day = lesson_day_for(today_utc(), catalogue.count)
    lesson = catalogue.get(day)
    if lesson is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "No lesson found for today"})
    return _lesson_response(lesson)


@router.post("/progress", response_model=ProgressEntry)
async def save_progress(
    request: ProgressRequest,
    user_id: str = Depends(get_current_user_id),
    config_engine: ConfigEngine = Depends(get_config_engine),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a completed lesson

    Streak: yesterday -> +1, today -> unchanged, otherwise restarts at 1
    """
    lesson = config_engine.lessons.get(request.lesson_day)
    if lesson is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Lesson not found"})

    repo = LessonProgressRepository(db)
    now = now_utc_naive()
    streak = next_streak(await repo.latest(user_id), now.date())
    progress = await repo.upsert(
        user_id=user_id,
        lesson_day=request.lesson_day,
        quiz_score=request.quiz_score,
        streak=streak,
        completed_at=now,
    )

    logger.info("Lesson progress | user=%s day=%s score=%s streak=%s", user_id, lesson.day, progress.quiz_score, streak)
    return ProgressEntry(
        lesson_day=progress.lesson_day,
        lesson_title=lesson.title,
        quiz_score=progress.quiz_score,
        streak=progress.streak,
        completed_at=to_iso_db(progress.completed_at),
    )


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    user_id: str = Depends(get_current_user_id),
    config_engine: ConfigEngine = Depends(get_config_engine),
    db: AsyncSession = Depends(get_db),
):
    rows = await LessonProgressRepository(db).list_for_user(user_id)
    stats = progress_stats(rows)
    catalogue = config_engine.lessons

    entries = []
    for row in rows:
        lesson = catalogue.get(row.lesson_day)
        entries.append(
            ProgressEntry(
                lesson_day=row.lesson_day,
                lesson_title=lesson.title if lesson else None,
                quiz_score=row.quiz_score,
                streak=row.streak,
                completed_at=to_iso_db(row.completed_at),
            )
        )

    return ProgressResponse(
        progress=entries,
        stats=ProgressStatsResponse(
            current_streak=stats.current_streak,
            total_lessons_completed=stats.total_lessons_completed,
            average_score=stats.average_score,
        ),
    )
