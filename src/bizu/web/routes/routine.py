"""Study routine endpoints. A user has at most one routine."""

from fastapi import APIRouter, Depends, HTTPException, status

from bizu.core.routine_planner import (
    ROUTINE_ID,
    DaySchedule,
    StudyRoutine,
    StudyTask,
)
from bizu.db.store import StudyStore
from bizu.web.dependencies import get_store
from bizu.web.schemas import DayScheduleSchema, RoutineSchema, StudyTaskSchema

router = APIRouter(prefix="/api/routine", tags=["routine"])


def _to_schema(routine: StudyRoutine) -> RoutineSchema:
    return RoutineSchema(
        id=ROUTINE_ID,
        target_exam=routine.target_exam,
        hours_per_day=routine.hours_per_day,
        week_schedule=[
            DayScheduleSchema(
                day=d.day,
                focus=d.focus,
                tasks=[
                    StudyTaskSchema(subject=t.subject, activity=t.activity, duration=t.duration)
                    for t in d.tasks
                ],
            )
            for d in routine.week_schedule
        ],
        created_at=routine.created_at,
    )


@router.get("", response_model=RoutineSchema)
def get_routine(store: StudyStore = Depends(get_store)) -> RoutineSchema:
    """Current routine."""
    routine = store.get_study_routine()
    if routine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No study routine saved",
        )
    return _to_schema(routine)


@router.put("", response_model=RoutineSchema)
def save_routine(
    request: RoutineSchema,
    store: StudyStore = Depends(get_store),
) -> RoutineSchema:
    """Replace the routine. The id is always ``user_routine``."""
    routine = StudyRoutine(
        target_exam=request.target_exam,
        hours_per_day=request.hours_per_day,
        week_schedule=[
            DaySchedule(
                day=d.day,
                focus=d.focus,
                tasks=[
                    StudyTask(subject=t.subject, activity=t.activity, duration=t.duration)
                    for t in d.tasks
                ],
            )
            for d in request.week_schedule
        ],
    )
    if request.created_at:
        routine.created_at = request.created_at

    store.save_study_routine(routine)
    return _to_schema(routine)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_routine(store: StudyStore = Depends(get_store)) -> None:
    """Delete the routine (no-op when none is saved)."""
    store.delete_study_routine()
