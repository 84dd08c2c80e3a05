"""Public exam news radar.

The home page shows a seed list of expected exams; refreshing asks the
model for an updated list given the titles already displayed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog

from bizu.llm.client import LLMClient, LLMResponseError

logger = structlog.get_logger(__name__)

STATUSES = (
    "Previsto",
    "Solicitado",
    "Autorizado",
    "Banca Definida",
    "Edital Publicado",
)

RADAR_SIZE = 6

SYSTEM_PROMPT_RADAR = """Você acompanha notícias de concursos públicos brasileiros.
Responda SOMENTE com JSON válido (array). SEM markdown.

Estrutura:
[{"id":"1","institution":"...","title":"...","forecast":"...","status":"Previsto | Solicitado | Autorizado | Banca Definida | Edital Publicado","salary":"...","board":"...","url":"..."}]

Se a lista atual já estiver atualizada, responda {"no_updates": true}."""

USER_PROMPT_RADAR = """Liste {n} grandes concursos públicos brasileiros previstos para os próximos anos.
Data de hoje: {today}.

Lista atual:
{existing}"""


@dataclass
class NewsItem:
    id: str
    institution: str
    title: str
    forecast: str
    status: str = "Previsto"
    salary: str = ""
    board: str = ""
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = {
            "id": self.id,
            "institution": self.institution,
            "title": self.title,
            "forecast": self.forecast,
            "status": self.status,
            "salary": self.salary,
            "board": self.board,
        }
        if self.url:
            result["url"] = self.url
        return result


@dataclass
class RadarUpdate:
    """Outcome of a radar refresh."""

    items: list[NewsItem]
    no_updates: bool = False

    def to_payload(self) -> Any:
        if self.no_updates:
            return {"no_updates": True}
        return [item.to_dict() for item in self.items]


INITIAL_NEWS = [
    NewsItem("1", "Polícia Federal", "Agente e Escrivão", "2º Sem/2026", "Solicitado", "R$ 14.000+", "A definir"),
    NewsItem("2", "MPU", "Técnico e Analista", "Início de 2026", "Previsto", "Até R$ 13.000", "Provável Cebraspe"),
    NewsItem("3", "Receita Federal", "Auditor Fiscal", "2026", "Previsto", "R$ 21.000+", "FGV"),
    NewsItem("4", "INSS", "Analista do Seguro Social", "1º Sem/2026", "Autorizado", "R$ 9.000", "A definir"),
    NewsItem("5", "PRF", "Policial Rodoviário", "Fim de 2026", "Solicitado", "R$ 10.000+", "Cebraspe"),
    NewsItem("6", "Caixa", "Técnico Bancário", "2026", "Previsto", "R$ 4.000 + PLR", "Cesgranrio"),
]


def normalize_status(value: Any) -> str:
    text = str(value or "").strip()
    return text if text in STATUSES else "Previsto"


def update_radar(
    existing_titles: list[str],
    client: LLMClient,
    today: date | None = None,
) -> RadarUpdate:
    """Ask the model for an updated list of expected exams.

    Args:
        existing_titles: "Institution - Title" strings currently displayed
        client: LLM client
        today: Reference date for the prompt

    Returns:
        RadarUpdate with items, or ``no_updates`` set
    """
    if today is None:
        today = date.today()

    existing = "\n".join(f"- {t}" for t in existing_titles) or "(vazia)"
    raw_result = client.simple_json(
        system_prompt=SYSTEM_PROMPT_RADAR,
        user_message=USER_PROMPT_RADAR.format(
            n=RADAR_SIZE,
            today=today.strftime("%d/%m/%Y"),
            existing=existing,
        ),
    )

    if isinstance(raw_result, dict):
        if raw_result.get("no_updates"):
            logger.info("radar_no_updates")
            return RadarUpdate(items=[], no_updates=True)
        raw_result = raw_result.get("items", [])
    if not isinstance(raw_result, list):
        raise LLMResponseError("Formato do radar inesperado na resposta da IA.")

    items: list[NewsItem] = []
    for n_data in raw_result:
        if not isinstance(n_data, dict) or not n_data.get("title"):
            continue
        items.append(
            NewsItem(
                id=str(len(items) + 1),
                institution=str(n_data.get("institution") or ""),
                title=str(n_data["title"]),
                forecast=str(n_data.get("forecast") or ""),
                status=normalize_status(n_data.get("status")),
                salary=str(n_data.get("salary") or ""),
                board=str(n_data.get("board") or ""),
                url=str(n_data.get("url") or ""),
            )
        )

    logger.info("radar_updated", count=len(items))
    return RadarUpdate(items=items)
