"""Program endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.models import ProgramStatus
from ptstudio.schemas.program import (
    ProgramCreate,
    ProgramRenewal,
    ProgramResponse,
    ProgramUpdate,
)
from ptstudio.services import programs
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/programs", tags=["Programs"])


@router.get("", response_model=List[ProgramResponse])
async def list_programs(
    status_filter: Optional[ProgramStatus] = Query(None, alias="status"),
    branch_id: Optional[int] = Query(None),
    member_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    items = await programs.list_programs(store, caller, status_filter, branch_id, member_id)
    return [ProgramResponse.from_program(p) for p in items]


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return ProgramResponse.from_program(await programs.load_program(store, caller, program_id))


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
async def create_program(
    request: ProgramCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return ProgramResponse.from_program(await programs.create_program(store, caller, request))


@router.patch("/{program_id}", response_model=ProgramResponse)
async def update_program(
    program_id: int,
    changes: ProgramUpdate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return ProgramResponse.from_program(
        await programs.update_program(store, caller, program_id, changes)
    )


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(
    program_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """Deletes the program and all of its sessions."""
    await programs.delete_program(store, caller, program_id)


@router.post(
    "/{program_id}/re-register",
    response_model=ProgramResponse,
    status_code=status.HTTP_201_CREATED,
)
async def re_register_program(
    program_id: int,
    renewal: Optional[ProgramRenewal] = None,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return ProgramResponse.from_program(
        await programs.re_register_program(store, caller, program_id, renewal)
    )


@router.post("/{program_id}/reconcile")
async def reconcile_program(
    program_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """Recount completed sessions after reverts or deletions."""
    program, changed = await programs.reconcile(store, caller, program_id)
    return {"program": ProgramResponse.from_program(program), "changed": changed}
