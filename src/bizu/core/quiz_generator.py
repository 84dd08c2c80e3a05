"""Quiz generation module.

Responsibilities:
- Generate multiple-choice questions for a topic using the LLM
- Normalize the model output into the question contract
- Score a finished quiz

Output structure (JSON list):
- [{id, text, options[4], correctAnswerIndex, explanation}]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from bizu.llm.client import LLMClient, LLMResponseError

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

OPTIONS_PER_QUESTION = 4
MIN_QUESTIONS = 1
MAX_QUESTIONS = 20

DIFFICULTIES = ("Fácil", "Médio", "Difícil")

_DIFFICULTY_ALIASES = {
    "easy": "Fácil",
    "facil": "Fácil",
    "fácil": "Fácil",
    "medium": "Médio",
    "medio": "Médio",
    "médio": "Médio",
    "hard": "Difícil",
    "dificil": "Difícil",
    "difícil": "Difícil",
}

# =============================================================================
# PROMPTS
# =============================================================================

SYSTEM_PROMPT_QUIZ = """Você é uma banca examinadora de concursos (estilo CEBRASPE/FGV).

REGRAS:
1. Responda SOMENTE com JSON válido (array de objetos). SEM markdown.
2. Cada questão tem exatamente 4 alternativas.
3. correctAnswerIndex é o índice (0-3) da alternativa correta.
4. A explicação deve citar o artigo da lei ou súmula quando aplicável.

Estrutura:
[{"id":"1","text":"Enunciado?","options":["A","B","C","D"],"correctAnswerIndex":0,"explanation":"..."}]"""

USER_PROMPT_QUIZ = """Gere {n} perguntas de múltipla escolha EXTREMAMENTE TÉCNICAS sobre: "{topic}".
Dificuldade: {difficulty}.
Idioma: Português do Brasil.

IMPORTANTE:
- Foque na letra da lei e jurisprudência.
- As questões devem ser desafiadoras."""


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuizConfig:
    """Parameters for a quiz request."""

    topic: str
    difficulty: str = "Médio"
    number_of_questions: int = 5

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> QuizConfig:
        """Build from the camelCase wire payload.

        Raises:
            ValueError: If topic is missing
        """
        topic = str(payload.get("topic") or "").strip()
        if not topic:
            raise ValueError("topic is required")

        try:
            n = int(payload.get("numberOfQuestions", 5))
        except (TypeError, ValueError):
            n = 5

        return cls(
            topic=topic,
            difficulty=normalize_difficulty(payload.get("difficulty")),
            number_of_questions=max(MIN_QUESTIONS, min(n, MAX_QUESTIONS)),
        )


@dataclass
class Question:
    """A single multiple-choice question."""

    id: str
    text: str
    options: list[str]
    correct_answer_index: int
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "options": self.options,
            "correctAnswerIndex": self.correct_answer_index,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        return cls(
            id=str(data["id"]),
            text=data["text"],
            options=list(data.get("options", [])),
            correct_answer_index=int(data.get("correctAnswerIndex", 0)),
            explanation=data.get("explanation", ""),
        )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def normalize_difficulty(value: Any) -> str:
    """Map free-form difficulty to Fácil/Médio/Difícil (default Médio)."""
    if not value:
        return "Médio"
    text = str(value).strip()
    if text in DIFFICULTIES:
        return text
    return _DIFFICULTY_ALIASES.get(text.lower(), "Médio")


def _coerce_answer_index(value: Any) -> int:
    """Integral numbers and digit strings ('2', 2.0, '2.0') become ints, anything else 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0
    if not number.is_integer():
        return 0
    return int(number)


def _parse_questions_from_llm(raw_data: Any) -> list[Question]:
    """Parse and normalize questions from the LLM response."""
    if isinstance(raw_data, dict):
        # Some models wrap the array: {"questions": [...]}
        raw_data = raw_data.get("questions", [])
    if not isinstance(raw_data, list):
        raise LLMResponseError("Formato de quiz inesperado na resposta da IA.")

    questions: list[Question] = []
    for q_data in raw_data:
        if not isinstance(q_data, dict):
            continue

        text = str(q_data.get("text") or q_data.get("question") or "").strip()
        if not text:
            continue

        options = [str(o) for o in (q_data.get("options") or [])][:OPTIONS_PER_QUESTION]
        while len(options) < OPTIONS_PER_QUESTION:
            options.append("—")

        correct = _coerce_answer_index(q_data.get("correctAnswerIndex", 0))

        if correct < 0 or correct >= OPTIONS_PER_QUESTION:
            logger.warning(
                "invalid_correct_answer_index",
                correct_answer=correct,
                max_valid_index=OPTIONS_PER_QUESTION - 1,
            )
            correct = max(0, min(correct, OPTIONS_PER_QUESTION - 1))

        questions.append(
            Question(
                id="",
                text=text,
                options=options,
                correct_answer_index=correct,
                explanation=str(q_data.get("explanation") or ""),
            )
        )

    # Ids are positional so answers map back deterministically
    for i, question in enumerate(questions, 1):
        question.id = str(i)

    return questions


# =============================================================================
# MAIN FUNCTIONS
# =============================================================================


def generate_quiz(config: QuizConfig, client: LLMClient) -> list[Question]:
    """Generate quiz questions for a topic.

    Args:
        config: Topic, difficulty and question count
        client: LLM client

    Returns:
        List of normalized questions

    Raises:
        LLMError: On upstream failure or unusable output
    """
    user_prompt = USER_PROMPT_QUIZ.format(
        n=config.number_of_questions,
        topic=config.topic,
        difficulty=config.difficulty,
    )

    raw_result = client.simple_json(
        system_prompt=SYSTEM_PROMPT_QUIZ,
        user_message=user_prompt,
    )
    questions = _parse_questions_from_llm(raw_result)

    if not questions:
        raise LLMResponseError("A IA não gerou nenhuma questão válida.")

    if len(questions) > config.number_of_questions:
        questions = questions[: config.number_of_questions]

    logger.info(
        "quiz_generated",
        topic=config.topic,
        difficulty=config.difficulty,
        requested=config.number_of_questions,
        count=len(questions),
    )
    return questions


def score_quiz(questions: list[Question], answers: dict[str, int]) -> int:
    """Count answers matching the correct option.

    Args:
        questions: Questions of the quiz
        answers: Map of question id to chosen option index

    Returns:
        Number of correct answers
    """
    return sum(
        1 for q in questions if answers.get(q.id) == q.correct_answer_index
    )
