"""Weekly study routine generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from bizu.llm.client import LLMClient, LLMResponseError

logger = structlog.get_logger(__name__)

# A user has at most one routine, always stored under this id
ROUTINE_ID = "user_routine"

MIN_HOURS = 1
MAX_HOURS = 16

SYSTEM_PROMPT_ROUTINE = """Você monta ciclos de estudo para concurseiros.
Responda SOMENTE com JSON válido. SEM markdown.

Estrutura:
{"weekSchedule":[{"day":"...","focus":"...","tasks":[{"subject":"...","activity":"...","duration":"..."}]}]}"""

USER_PROMPT_ROUTINE = """Sou um 'concurseiro' focado em: "{target_exam}".
Tenho {hours} horas líquidas por dia.
Matérias chave: {subjects}.

Monte um CICLO DE ESTUDOS semanal insano de produtivo (segunda a domingo).
Intercale matérias teóricas com questões.
Domingo é dia de simulado e revisão. Idioma: PT-BR."""


@dataclass
class StudyTask:
    subject: str
    activity: str
    duration: str

    def to_dict(self) -> dict[str, Any]:
        return {"subject": self.subject, "activity": self.activity, "duration": self.duration}


@dataclass
class DaySchedule:
    day: str
    focus: str
    tasks: list[StudyTask] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "focus": self.focus,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class StudyRoutine:
    """A weekly study plan for one target exam."""

    target_exam: str
    hours_per_day: float
    week_schedule: list[DaySchedule]
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    id: str = ROUTINE_ID

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "targetExam": self.target_exam,
            "hoursPerDay": self.hours_per_day,
            "weekSchedule": [d.to_dict() for d in self.week_schedule],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudyRoutine:
        return cls(
            target_exam=str(data.get("targetExam", "")),
            hours_per_day=data.get("hoursPerDay", 0),
            week_schedule=parse_week_schedule(data.get("weekSchedule")),
            created_at=str(data.get("createdAt", "")),
            id=ROUTINE_ID,
        )


def parse_week_schedule(raw: Any) -> list[DaySchedule]:
    """Normalize a weekSchedule list; malformed entries are skipped."""
    if not isinstance(raw, list):
        return []

    days: list[DaySchedule] = []
    for d_data in raw:
        if not isinstance(d_data, dict):
            continue
        tasks = [
            StudyTask(
                subject=str(t.get("subject") or ""),
                activity=str(t.get("activity") or ""),
                duration=str(t.get("duration") or ""),
            )
            for t in (d_data.get("tasks") or [])
            if isinstance(t, dict)
        ]
        days.append(
            DaySchedule(
                day=str(d_data.get("day") or ""),
                focus=str(d_data.get("focus") or ""),
                tasks=tasks,
            )
        )
    return days


def generate_routine(
    target_exam: str,
    hours: float,
    subjects: str,
    client: LLMClient,
) -> StudyRoutine:
    """Generate a weekly routine.

    Args:
        target_exam: Exam the student is preparing for
        hours: Net study hours per day (bounded to 1..16)
        subjects: Free-text list of key subjects
        client: LLM client

    Raises:
        LLMResponseError: If the model returns no schedule
    """
    hours = max(MIN_HOURS, min(hours, MAX_HOURS))

    raw_result = client.simple_json(
        system_prompt=SYSTEM_PROMPT_ROUTINE,
        user_message=USER_PROMPT_ROUTINE.format(
            target_exam=target_exam,
            hours=hours,
            subjects=subjects,
        ),
    )

    if isinstance(raw_result, list):
        raw_schedule = raw_result
    elif isinstance(raw_result, dict):
        raw_schedule = raw_result.get("weekSchedule")
    else:
        raw_schedule = None

    week_schedule = parse_week_schedule(raw_schedule)
    if not week_schedule:
        raise LLMResponseError("Falha ao gerar rotina")

    logger.info("routine_generated", target_exam=target_exam, days=len(week_schedule))

    return StudyRoutine(
        target_exam=target_exam,
        hours_per_day=hours,
        week_schedule=week_schedule,
    )
