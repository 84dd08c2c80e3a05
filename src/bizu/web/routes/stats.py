"""Stats and quiz result endpoints."""

from fastapi import APIRouter, Depends, Query, status

from bizu.core.stats import UserStats
from bizu.db.store import StudyStore
from bizu.web.dependencies import get_store
from bizu.web.schemas import (
    QuizHistoryResponse,
    QuizResultCreate,
    QuizResultResponse,
    StatsResponse,
)

router = APIRouter(prefix="/api", tags=["stats"])


def _stats_response(stats: UserStats) -> StatsResponse:
    return StatsResponse(
        total_questions=stats.total_questions,
        total_correct=stats.total_correct,
        last_study_date=stats.last_study_date,
        current_streak=stats.current_streak,
        performance=stats.performance,
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: StudyStore = Depends(get_store)) -> StatsResponse:
    """Aggregated stats (zeros for a new user)."""
    return _stats_response(store.get_user_stats())


@router.post(
    "/quiz-results",
    response_model=StatsResponse,
    status_code=status.HTTP_201_CREATED,
)
def save_quiz_result(
    result: QuizResultCreate,
    store: StudyStore = Depends(get_store),
) -> StatsResponse:
    """Record a finished quiz and return the updated stats."""
    stats = store.save_quiz_result(result.topic, result.total_questions, result.score)
    return _stats_response(stats)


@router.get("/quiz-results", response_model=QuizHistoryResponse)
def list_quiz_results(
    limit: int = Query(default=50, ge=1, le=500),
    store: StudyStore = Depends(get_store),
) -> QuizHistoryResponse:
    """Most recent quiz results first."""
    results = [
        QuizResultResponse(
            topic=r.topic,
            total_questions=r.total_questions,
            score=r.score,
            date=r.date,
        )
        for r in store.list_quiz_history(limit=limit)
    ]
    return QuizHistoryResponse(results=results, count=len(results))
