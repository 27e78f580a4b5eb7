"""Program preset endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.directory import PresetCreate, PresetResponse, PresetUpdate
from ptstudio.services import directory
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/presets", tags=["Presets"])


@router.get("", response_model=List[PresetResponse])
async def list_presets(
    branch_id: Optional[int] = Query(None, description="Presets usable at this branch"),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.list_presets(store, caller, branch_id)


@router.post("", response_model=PresetResponse, status_code=status.HTTP_201_CREATED)
async def create_preset(
    request: PresetCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.create_preset(store, caller, request)


@router.patch("/{preset_id}", response_model=PresetResponse)
async def update_preset(
    preset_id: int,
    changes: PresetUpdate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.update_preset(store, caller, preset_id, changes)


@router.delete("/{preset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_preset(
    preset_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    await directory.delete_preset(store, caller, preset_id)
