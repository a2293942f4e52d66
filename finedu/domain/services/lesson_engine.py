"""
LESSON ENGINE
Daily lesson rotation, streaks and progress statistics
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from finedu.domain.models import LessonProgress


@dataclass(frozen=True)
class ProgressStats:
    current_streak: int
    total_lessons_completed: int
    average_score: int


def lesson_day_for(today: date, lesson_count: int) -> int:
    """Lesson number (1-based) shown on ``today``"""
    if lesson_count <= 0:
        raise ValueError("lesson_count must be positive")
    day_of_year = today.timetuple().tm_yday
    return (day_of_year % lesson_count) + 1


def next_streak(last: Optional[LessonProgress], today: date) -> int:
    """
    Streak after completing a lesson on ``today``

    Last completion yesterday extends the streak, today keeps it,
    anything older (or nothing) restarts at 1.
    """
    if last is None:
        return 1
    last_day = last.completed_at.date() if isinstance(last.completed_at, datetime) else last.completed_at
    if last_day == today - timedelta(days=1):
        return last.streak + 1
    if last_day == today:
        return last.streak
    return 1


def progress_stats(progress: Sequence[LessonProgress]) -> ProgressStats:
    """Stats over progress rows ordered newest first"""
    if not progress:
        return ProgressStats(current_streak=0, total_lessons_completed=0, average_score=0)

    total = sum(p.quiz_score for p in progress)
    average = (Decimal(total) / len(progress)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return ProgressStats(
        current_streak=progress[0].streak,
        total_lessons_completed=len(progress),
        average_score=int(average),
    )
