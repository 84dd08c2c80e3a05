"""Exam news radar endpoint."""

from fastapi import APIRouter

from bizu.core.radar import INITIAL_NEWS
from bizu.web.schemas import NewsItemSchema

router = APIRouter(prefix="/api/radar", tags=["radar"])


@router.get("", response_model=list[NewsItemSchema])
def get_radar() -> list[NewsItemSchema]:
    """Seed list shown before the first AI refresh (no model call)."""
    return [NewsItemSchema(**item.to_dict()) for item in INITIAL_NEWS]
