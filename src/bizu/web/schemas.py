"""Pydantic schemas for the Web API.

Field names are snake_case in Python and camelCase on the wire, matching
the payloads the SPA already sends.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

API_VERSION = "0.1.0"


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    backend: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


# =============================================================================
# STATS / QUIZ RESULTS
# =============================================================================


class StatsResponse(CamelModel):
    total_questions: int
    total_correct: int
    last_study_date: str
    current_streak: int
    performance: int


class QuizResultCreate(CamelModel):
    """A finished quiz reported by the client."""

    topic: str = Field(..., min_length=1, max_length=200)
    total_questions: int = Field(..., ge=1)
    score: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _score_within_total(self) -> QuizResultCreate:
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed totalQuestions")
        return self


class QuizResultResponse(CamelModel):
    topic: str
    total_questions: int
    score: int
    date: str


class QuizHistoryResponse(BaseModel):
    results: list[QuizResultResponse]
    count: int


# =============================================================================
# CHAT
# =============================================================================


class ChatMessageCreate(BaseModel):
    """Chat message to persist. Id and timestamp are generated when absent."""

    role: Literal["user", "model"]
    text: str = Field(..., min_length=1)
    id: str | None = None
    timestamp: str | None = None


class ChatMessageResponse(BaseModel):
    id: str
    role: Literal["user", "model"]
    text: str
    timestamp: str


class ChatHistoryResponse(BaseModel):
    messages: list[ChatMessageResponse]
    count: int


class TutorQuestion(BaseModel):
    """A new tutor turn from the student."""

    message: str = Field(..., min_length=1, max_length=4000)


# =============================================================================
# MATERIALS
# =============================================================================


class MaterialSchema(CamelModel):
    id: str
    title: str = Field(..., min_length=1)
    category: str = ""
    type: Literal["PDF", "VIDEO", "ARTICLE"] = "PDF"
    duration: str = ""
    summary: str = ""
    updated_at: str = ""
    content: str | None = None


class MaterialListResponse(BaseModel):
    materials: list[MaterialSchema]
    count: int


class MaterialGenerateRequest(BaseModel):
    count: int = Field(default=3, ge=1, le=10)
    topic: str | None = None


class MaterialContentResponse(BaseModel):
    id: str
    content: str


# =============================================================================
# ROUTINE
# =============================================================================


class StudyTaskSchema(BaseModel):
    subject: str = ""
    activity: str = ""
    duration: str = ""


class DayScheduleSchema(BaseModel):
    day: str = ""
    focus: str = ""
    tasks: list[StudyTaskSchema] = Field(default_factory=list)


class RoutineSchema(CamelModel):
    id: str = "user_routine"
    target_exam: str = Field(..., min_length=1)
    hours_per_day: float = Field(..., gt=0, le=24)
    week_schedule: list[DayScheduleSchema] = Field(default_factory=list)
    created_at: str | None = None


# =============================================================================
# RADAR
# =============================================================================


class NewsItemSchema(BaseModel):
    id: str
    institution: str
    title: str
    forecast: str
    status: str
    salary: str = ""
    board: str = ""
    url: str = ""
