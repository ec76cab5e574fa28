"""Mind map CRUD and generation routes."""

from uuid import UUID

from fastapi import APIRouter, status

from eduvoice.api.deps import CurrentUser, Generator, Store, verify_ownership_or_404
from eduvoice.schemas.mindmaps import (
    MindMapCreate,
    MindMapGenerateRequest,
    MindMapListResponse,
    MindMapRead,
    MindMapUpdate,
)
from eduvoice.services import load_owned_materials

router = APIRouter(prefix="/mindmaps", tags=["mindmaps"])


@router.get("", response_model=MindMapListResponse)
async def list_mind_maps(current_user: CurrentUser, storage: Store) -> MindMapListResponse:
    """List mind maps, most recently updated first."""
    mind_maps = await storage.get_mind_maps_by_user(current_user.id)
    return MindMapListResponse(
        mind_maps=[MindMapRead.model_validate(m) for m in mind_maps],
        total=len(mind_maps),
    )


@router.post("", response_model=MindMapRead, status_code=status.HTTP_201_CREATED)
async def create_mind_map(
    data: MindMapCreate,
    current_user: CurrentUser,
    storage: Store,
) -> MindMapRead:
    """Save a user-authored mind map."""
    mind_map = await storage.create_mind_map(
        user_id=current_user.id,
        title=data.title,
        graph=data.graph.to_json(),
        material_ids=[str(i) for i in data.material_ids] if data.material_ids is not None else None,
    )
    return MindMapRead.model_validate(mind_map)


@router.post("/generate", response_model=MindMapRead, status_code=status.HTTP_201_CREATED)
async def generate_mind_map(
    data: MindMapGenerateRequest,
    current_user: CurrentUser,
    storage: Store,
    generator: Generator,
) -> MindMapRead:
    """
    Generate a mind map from the listed materials.

    The model's graph is validated before it is stored; a malformed graph
    fails the request and nothing is persisted.
    """
    materials = await load_owned_materials(storage, current_user.id, data.material_ids)
    graph = await generator.mind_map(data.topic, materials, layout=data.layout)

    mind_map = await storage.create_mind_map(
        user_id=current_user.id,
        title=f"{data.topic} - Mind Map",
        graph=graph.to_json(),
        material_ids=[str(i) for i in data.material_ids],
    )
    return MindMapRead.model_validate(mind_map)


@router.get("/{mind_map_id}", response_model=MindMapRead)
async def get_mind_map(
    mind_map_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> MindMapRead:
    """Get a specific mind map by ID."""
    mind_map = await storage.get_mind_map(mind_map_id)
    verify_ownership_or_404(mind_map, current_user, "Mind map not found")
    return MindMapRead.model_validate(mind_map)


@router.put("/{mind_map_id}", response_model=MindMapRead)
async def update_mind_map(
    mind_map_id: UUID,
    data: MindMapUpdate,
    current_user: CurrentUser,
    storage: Store,
) -> MindMapRead:
    """Update title and/or graph. updated_at is refreshed even for an empty update."""
    mind_map = await storage.get_mind_map(mind_map_id)
    verify_ownership_or_404(mind_map, current_user, "Mind map not found")

    updates = {}
    if data.title is not None:
        updates["title"] = data.title
    if data.graph is not None:
        updates["graph"] = data.graph.to_json()

    mind_map = await storage.update_mind_map(mind_map_id, **updates)
    verify_ownership_or_404(mind_map, current_user, "Mind map not found")
    return MindMapRead.model_validate(mind_map)


@router.delete("/{mind_map_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mind_map(
    mind_map_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> None:
    """Delete a mind map."""
    mind_map = await storage.get_mind_map(mind_map_id)
    verify_ownership_or_404(mind_map, current_user, "Mind map not found")
    await storage.delete_mind_map(mind_map_id)
