"""Study material generation.

Two steps, mirroring how the library page works:
1. ``generate_materials`` suggests a list of material cards (title, type,
   summary) for a topic.
2. ``generate_material_content`` writes the full article or lesson script
   for one card when the student opens it.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

import structlog

from bizu.llm.client import LLMClient, LLMResponseError

logger = structlog.get_logger(__name__)

MaterialType = Literal["PDF", "VIDEO", "ARTICLE"]

MATERIAL_TYPES = ("PDF", "VIDEO", "ARTICLE")
MIN_MATERIALS = 1
MAX_MATERIALS = 10

TOPICS = [
    "Direito Constitucional",
    "Direito Administrativo",
    "Processo Penal",
    "Raciocínio Lógico",
    "Informática para Concursos",
    "Legislação Especial",
    "Direito Penal",
    "AFO",
]

SYSTEM_PROMPT_MATERIALS = """Você sugere materiais de estudo de ALTA PERFORMANCE para concursos.
Responda SOMENTE com JSON válido (array). SEM markdown.

Estrutura:
[{"title":"...","category":"...","type":"PDF | VIDEO | ARTICLE","duration":"...","summary":"..."}]"""

USER_PROMPT_MATERIALS = """Sugira {count} materiais de estudo sobre: {topic} ou temas quentes do momento.
Conteúdo em PT-BR."""

SYSTEM_PROMPT_CONTENT = """Aja como um professor de elite de cursinho preparatório.
O conteúdo deve ser denso, rico em detalhes, citar leis, dar macetes mnemônicos
e focar no que cai na prova. Escreva em Markdown, em PT-BR."""

USER_PROMPT_CONTENT = """Crie o CONTEÚDO COMPLETO para:
Título: {title}
Área: {category}
Tipo: {type}

{format_hint}
Inclua introdução e tópicos principais.
Termine com 3 questões 'Certo ou Errado' estilo Cebraspe sobre o tema."""

_FORMAT_HINTS = {
    "VIDEO": "É um VIDEO: escreva o roteiro da aula passo a passo.",
    "PDF": "É um PDF: escreva o texto corrido formatado.",
    "ARTICLE": "É um ARTIGO: escreva um artigo educativo completo.",
}


@dataclass
class StudyMaterial:
    """A study material card, optionally with generated content."""

    id: str
    title: str
    category: str
    type: MaterialType
    duration: str = ""
    summary: str = ""
    updated_at: str = ""
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "type": self.type,
            "duration": self.duration,
            "summary": self.summary,
            "updatedAt": self.updated_at,
        }
        if self.content is not None:
            result["content"] = self.content
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudyMaterial:
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            title=str(data.get("title", "")),
            category=str(data.get("category", "")),
            type=normalize_material_type(data.get("type")),
            duration=str(data.get("duration") or ""),
            summary=str(data.get("summary") or ""),
            updated_at=str(data.get("updatedAt") or data.get("updated_at") or ""),
            content=data.get("content"),
        )


def normalize_material_type(value: Any) -> MaterialType:
    """Upper-case known types; anything else becomes PDF."""
    text = str(value or "").strip().upper()
    if text in MATERIAL_TYPES:
        return text  # type: ignore[return-value]
    return "PDF"


def generate_materials(
    count: int,
    client: LLMClient,
    topic: str | None = None,
    rng: random.Random | None = None,
) -> list[StudyMaterial]:
    """Suggest study materials.

    Args:
        count: Number of materials (bounded to 1..10)
        client: LLM client
        topic: Subject; picked at random from TOPICS when None
        rng: Random source for the topic pick (for testing)

    Returns:
        Materials enriched with ids and today's date
    """
    count = max(MIN_MATERIALS, min(count, MAX_MATERIALS))
    if not topic:
        topic = (rng or random).choice(TOPICS)

    raw_result = client.simple_json(
        system_prompt=SYSTEM_PROMPT_MATERIALS,
        user_message=USER_PROMPT_MATERIALS.format(count=count, topic=topic),
    )
    if isinstance(raw_result, dict):
        raw_result = raw_result.get("materials", [])
    if not isinstance(raw_result, list):
        raise LLMResponseError("Formato de materiais inesperado na resposta da IA.")

    today = date.today().isoformat()
    materials: list[StudyMaterial] = []
    for m_data in raw_result[:count]:
        if not isinstance(m_data, dict) or not m_data.get("title"):
            continue
        materials.append(
            StudyMaterial(
                id=str(uuid.uuid4()),
                title=str(m_data["title"]),
                category=str(m_data.get("category") or topic),
                type=normalize_material_type(m_data.get("type")),
                duration=str(m_data.get("duration") or ""),
                summary=str(m_data.get("summary") or ""),
                updated_at=today,
            )
        )

    logger.info("materials_generated", topic=topic, requested=count, count=len(materials))
    return materials


def generate_material_content(material: StudyMaterial, client: LLMClient) -> str:
    """Write the full markdown content for a material card."""
    user_prompt = USER_PROMPT_CONTENT.format(
        title=material.title,
        category=material.category,
        type=material.type,
        format_hint=_FORMAT_HINTS.get(material.type, ""),
    )

    content = client.simple_chat(
        system_prompt=SYSTEM_PROMPT_CONTENT,
        user_message=user_prompt,
    ).strip()

    if not content:
        raise LLMResponseError("Erro ao gerar conteúdo.")

    logger.info("material_content_generated", material_id=material.id, chars=len(content))
    return content
