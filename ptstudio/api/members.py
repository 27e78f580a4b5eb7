"""Member endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.directory import MemberCreate, MemberResponse, MemberUpdate
from ptstudio.services import directory
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/members", tags=["Members"])


@router.get("", response_model=List[MemberResponse])
async def list_members(
    branch_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.list_members(store, caller, branch_id)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.load_member(store, caller, member_id)


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    request: MemberCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.create_member(store, caller, request)


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    changes: MemberUpdate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.update_member(store, caller, member_id, changes)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    member_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    await directory.delete_member(store, caller, member_id)
