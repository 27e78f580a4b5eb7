"""Trainer endpoints."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.trainer import (
    TrainerCreate,
    TrainerResponse,
    TrainerUpdate,
    TrainerUpdateResponse,
)
from ptstudio.services import trainers
from ptstudio.services.propagation import propagate_rate_change
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/trainers", tags=["Trainers"])


@router.get("", response_model=List[TrainerResponse])
async def list_trainers(
    include_inactive: bool = Query(False),
    branch_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    items = await trainers.list_trainers(store, caller, include_inactive, branch_id)
    return [TrainerResponse.from_trainer(t) for t in items]


@router.get("/{trainer_id}", response_model=TrainerResponse)
async def get_trainer(
    trainer_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return TrainerResponse.from_trainer(await trainers.load_trainer(store, caller, trainer_id))


@router.post("", response_model=TrainerResponse, status_code=status.HTTP_201_CREATED)
async def create_trainer(
    request: TrainerCreate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return TrainerResponse.from_trainer(await trainers.create_trainer(store, caller, request))


@router.patch("/{trainer_id}", response_model=TrainerUpdateResponse)
async def update_trainer(
    trainer_id: int,
    changes: TrainerUpdate,
    background_tasks: BackgroundTasks,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """
    Update a trainer. When branch rates change, the trainer's sessions are
    repriced in the background after this response.
    """
    trainer, rates_changed = await trainers.update_trainer(store, caller, trainer_id, changes)
    if rates_changed:
        background_tasks.add_task(propagate_rate_change, trainer.id)

    response = TrainerResponse.from_trainer(trainer)
    return TrainerUpdateResponse(**response.model_dump(), rates_changed=rates_changed)


@router.delete("/{trainer_id}", response_model=TrainerResponse)
async def deactivate_trainer(
    trainer_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """Soft delete: the trainer is deactivated and removed from programs."""
    return TrainerResponse.from_trainer(
        await trainers.deactivate_trainer(store, caller, trainer_id)
    )


@router.post("/{trainer_id}/restore", response_model=TrainerResponse)
async def restore_trainer(
    trainer_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return TrainerResponse.from_trainer(await trainers.restore_trainer(store, caller, trainer_id))
