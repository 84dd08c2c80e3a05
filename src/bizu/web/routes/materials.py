"""Study material endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bizu.core.materials import StudyMaterial, generate_material_content, generate_materials
from bizu.db.store import StudyStore
from bizu.llm.client import LLMClient, LLMError, LLMRateLimitError
from bizu.web.dependencies import get_llm_client, get_store
from bizu.web.schemas import (
    MaterialContentResponse,
    MaterialGenerateRequest,
    MaterialListResponse,
    MaterialSchema,
)

router = APIRouter(prefix="/api/materials", tags=["materials"])


def _to_schema(material: StudyMaterial) -> MaterialSchema:
    return MaterialSchema(
        id=material.id,
        title=material.title,
        category=material.category,
        type=material.type,
        duration=material.duration,
        summary=material.summary,
        updated_at=material.updated_at,
        content=material.content,
    )


def _llm_http_error(error: LLMError) -> HTTPException:
    if isinstance(error, LLMRateLimitError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(error))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))


@router.get("", response_model=MaterialListResponse)
def list_materials(store: StudyStore = Depends(get_store)) -> MaterialListResponse:
    """All stored materials."""
    materials = [_to_schema(m) for m in store.get_all_materials()]
    return MaterialListResponse(materials=materials, count=len(materials))


@router.post("", response_model=MaterialListResponse, status_code=status.HTTP_201_CREATED)
def create_materials(
    request: MaterialGenerateRequest,
    store: StudyStore = Depends(get_store),
    client: LLMClient = Depends(get_llm_client),
) -> MaterialListResponse:
    """Generate new material suggestions and append them to the library."""
    try:
        generated = generate_materials(request.count, client, topic=request.topic)
    except LLMError as e:
        raise _llm_http_error(e) from e

    store.save_materials_batch(generated)
    materials = [_to_schema(m) for m in generated]
    return MaterialListResponse(materials=materials, count=len(materials))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_materials(store: StudyStore = Depends(get_store)) -> None:
    """Remove every stored material."""
    store.clear_all_materials()


@router.put("/{material_id}", response_model=MaterialSchema)
def save_material(
    material_id: str,
    request: MaterialSchema,
    store: StudyStore = Depends(get_store),
) -> MaterialSchema:
    """Create or replace one material."""
    if request.id != material_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Material id in path and body differ",
        )

    material = StudyMaterial(
        id=material_id,
        title=request.title,
        category=request.category,
        type=request.type,
        duration=request.duration,
        summary=request.summary,
        updated_at=request.updated_at,
        content=request.content,
    )
    store.save_material(material)
    return _to_schema(material)


@router.post("/{material_id}/content", response_model=MaterialContentResponse)
def material_content(
    material_id: str,
    refresh: bool = Query(default=False),
    store: StudyStore = Depends(get_store),
    client: LLMClient = Depends(get_llm_client),
) -> MaterialContentResponse:
    """Return the material content, generating and storing it on first access."""
    material = store.get_material(material_id)
    if material is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material '{material_id}' not found",
        )

    if material.content and not refresh:
        return MaterialContentResponse(id=material.id, content=material.content)

    try:
        material.content = generate_material_content(material, client)
    except LLMError as e:
        raise _llm_http_error(e) from e

    store.save_material(material)
    return MaterialContentResponse(id=material.id, content=material.content)
