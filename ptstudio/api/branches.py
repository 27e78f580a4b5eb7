"""Branch endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.directory import BranchCreate, BranchResponse
from ptstudio.services import directory
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/branches", tags=["Branches"])


@router.get("", response_model=List[BranchResponse])
async def list_branches(
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.list_branches(store, caller)


@router.post("", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    request: BranchCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.create_branch(store, caller, request)


@router.patch("/{branch_id}", response_model=BranchResponse)
async def rename_branch(
    branch_id: int,
    request: BranchCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.rename_branch(store, caller, branch_id, request)


@router.delete("/{branch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_branch(
    branch_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """Refused while members, programs, presets or trainers use the branch."""
    await directory.delete_branch(store, caller, branch_id)
