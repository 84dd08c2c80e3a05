"""Usage statistics and study streak.

Shared by both storage backends so the streak rule lives in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any


@dataclass
class UserStats:
    """Aggregated quiz statistics for one user."""

    total_questions: int = 0
    total_correct: int = 0
    last_study_date: str = ""  # YYYY-MM-DD, empty if never studied
    current_streak: int = 0

    @property
    def performance(self) -> int:
        """Correct answers as a rounded percentage (0 when no questions)."""
        if self.total_questions <= 0:
            return 0
        return round(self.total_correct / self.total_questions * 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalQuestions": self.total_questions,
            "totalCorrect": self.total_correct,
            "lastStudyDate": self.last_study_date,
            "currentStreak": self.current_streak,
            "performance": self.performance,
        }


def apply_quiz_result(
    stats: UserStats | None,
    total: int,
    score: int,
    today: date | None = None,
) -> UserStats:
    """Return stats updated with one finished quiz.

    Streak rule:
    - first result ever: streak 1
    - already studied today: streak unchanged
    - last study was yesterday: streak + 1
    - otherwise: streak restarts at 1

    Args:
        stats: Current stats, None if the user has none yet
        total: Number of questions in the quiz
        score: Number of correct answers
        today: Reference date (defaults to today)

    Returns:
        New UserStats instance
    """
    if today is None:
        today = date.today()
    today_str = today.isoformat()

    if stats is None:
        return UserStats(
            total_questions=total,
            total_correct=score,
            last_study_date=today_str,
            current_streak=1,
        )

    updated = replace(
        stats,
        total_questions=stats.total_questions + total,
        total_correct=stats.total_correct + score,
    )

    if stats.last_study_date != today_str:
        yesterday_str = (today - timedelta(days=1)).isoformat()
        if stats.last_study_date == yesterday_str:
            updated.current_streak = stats.current_streak + 1
        else:
            updated.current_streak = 1
        updated.last_study_date = today_str

    return updated
