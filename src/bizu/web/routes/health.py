"""Health check endpoint."""

from fastapi import APIRouter, Depends

from bizu.db.store import StudyStore
from bizu.web.dependencies import get_store
from bizu.web.schemas import API_VERSION, HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(store: StudyStore = Depends(get_store)) -> HealthResponse:
    """Check API health status and report the active storage backend."""
    return HealthResponse(status="ok", version=API_VERSION, backend=store.backend)
