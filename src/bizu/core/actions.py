"""Action registry for the generation proxy.

Maps the wire ``action`` names to handlers that validate the payload,
call the matching core function and return a JSON-serializable result.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from bizu.core.materials import StudyMaterial, generate_material_content, generate_materials
from bizu.core.quiz_generator import QuizConfig, generate_quiz
from bizu.core.radar import update_radar
from bizu.core.routine_planner import generate_routine
from bizu.core.tutor import ask_tutor
from bizu.llm.client import LLMClient

logger = structlog.get_logger(__name__)

Handler = Callable[[dict[str, Any], LLMClient], Any]


class ActionError(Exception):
    """Request cannot be dispatched."""

    pass


class UnknownActionError(ActionError):
    """Action name is not registered."""

    pass


class ActionPayloadError(ActionError):
    """Payload is missing required fields."""

    pass


def _handle_generate_quiz(payload: dict[str, Any], client: LLMClient) -> Any:
    try:
        config = QuizConfig.from_payload(payload)
    except ValueError as e:
        raise ActionPayloadError(f"generateQuiz: {e}") from e
    return [q.to_dict() for q in generate_quiz(config, client)]


def _handle_ask_tutor(payload: dict[str, Any], client: LLMClient) -> Any:
    message = str(payload.get("message") or "").strip()
    if not message:
        raise ActionPayloadError("askTutor: message is required")
    history = payload.get("history") or []
    if not isinstance(history, list):
        raise ActionPayloadError("askTutor: history must be a list")
    for entry in history:
        if not isinstance(entry, dict):
            raise ActionPayloadError("askTutor: history entries must be objects")
        parts = entry.get("parts")
        if parts is not None and (
            not isinstance(parts, list) or not all(isinstance(p, dict) for p in parts)
        ):
            raise ActionPayloadError("askTutor: history parts must be a list of objects")
    return {"text": ask_tutor(history, message, client)}


def _handle_generate_materials(payload: dict[str, Any], client: LLMClient) -> Any:
    try:
        count = int(payload.get("count", 3))
    except (TypeError, ValueError) as e:
        raise ActionPayloadError("generateMaterials: count must be an integer") from e
    materials = generate_materials(count, client, topic=payload.get("topic"))
    return [m.to_dict() for m in materials]


def _handle_material_content(payload: dict[str, Any], client: LLMClient) -> Any:
    raw = payload.get("material")
    if not isinstance(raw, dict) or not raw.get("title"):
        raise ActionPayloadError("generateMaterialContent: material with title is required")
    material = StudyMaterial.from_dict(raw)
    return {"content": generate_material_content(material, client)}


def _handle_generate_routine(payload: dict[str, Any], client: LLMClient) -> Any:
    target_exam = str(payload.get("targetExam") or "").strip()
    subjects = str(payload.get("subjects") or "").strip()
    if not target_exam or not subjects:
        raise ActionPayloadError("generateRoutine: targetExam and subjects are required")
    try:
        hours = float(payload.get("hours", 2))
    except (TypeError, ValueError) as e:
        raise ActionPayloadError("generateRoutine: hours must be a number") from e
    return generate_routine(target_exam, hours, subjects, client).to_dict()


def _handle_update_radar(payload: dict[str, Any], client: LLMClient) -> Any:
    existing = payload.get("existingTitles") or []
    if not isinstance(existing, list):
        raise ActionPayloadError("updateRadar: existingTitles must be a list")
    return update_radar([str(t) for t in existing], client).to_payload()


ACTIONS: dict[str, Handler] = {
    "generateQuiz": _handle_generate_quiz,
    "askTutor": _handle_ask_tutor,
    "generateMaterials": _handle_generate_materials,
    "generateMaterialContent": _handle_material_content,
    "generateRoutine": _handle_generate_routine,
    "updateRadar": _handle_update_radar,
}


def dispatch(action: str, payload: dict[str, Any] | None, client: LLMClient) -> Any:
    """Run a generation action.

    Args:
        action: Registered action name
        payload: Action payload (None treated as empty)
        client: LLM client

    Returns:
        JSON-serializable result

    Raises:
        UnknownActionError: Action not registered
        ActionPayloadError: Invalid payload
        LLMError: Upstream failure
    """
    handler = ACTIONS.get(action)
    if handler is None:
        raise UnknownActionError(f"Unknown action: {action}")

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ActionPayloadError(f"{action}: payload must be an object")

    logger.info("action_dispatched", action=action, model=client.config.model)
    return handler(payload, client)
