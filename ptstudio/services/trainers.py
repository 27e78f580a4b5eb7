"""
Trainer management.

Trainers are never hard-deleted: deactivating one keeps historical
sessions and settlement intact and detaches them from programs.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ptstudio.db.repository import Store
from ptstudio.models import AuditAction, AuditEntity, Trainer
from ptstudio.models.rate import Rate
from ptstudio.schemas.patches import ProgramPatch, TrainerPatch
from ptstudio.schemas.trainer import TrainerCreate, TrainerUpdate, rates_by_branch
from ptstudio.services.errors import (
    AccessDenied,
    PersistenceFailure,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.scope import (
    CallerContext,
    can_manage_trainer,
    can_view_trainer,
    ensure_visible,
    require_approved,
    require_staff,
    visible,
)
from ptstudio.utils.audit import log_action

logger = logging.getLogger(__name__)


async def load_trainer(store: Store, caller: CallerContext, trainer_id: int) -> Trainer:
    require_approved(caller)
    return ensure_visible(
        await store.trainers.get(trainer_id),
        lambda t: can_view_trainer(caller, t),
        "Trainer",
    )


async def list_trainers(
    store: Store,
    caller: CallerContext,
    include_inactive: bool = False,
    branch_id: Optional[int] = None,
) -> List[Trainer]:
    require_approved(caller)
    criteria = [] if include_inactive else [Trainer.is_active.is_(True)]
    trainers = visible(
        await store.trainers.list(*criteria),
        lambda t: can_view_trainer(caller, t),
    )
    if branch_id is not None:
        trainers = [t for t in trainers if branch_id in t.branch_ids]
    return trainers


async def check_color(
    store: Store,
    color: str,
    branch_ids: Iterable[int],
    exclude_id: Optional[int] = None,
) -> None:
    """Colors must be unique among active trainers sharing a branch."""
    branch_ids = set(branch_ids)
    for other in await store.trainers.list(Trainer.is_active.is_(True)):
        if other.id == exclude_id:
            continue
        if other.color.lower() == color.lower() and branch_ids & set(other.branch_ids):
            raise ValidationFailed(
                f"The color {color} is already used by {other.name} at the same branch."
            )


def _changed_branches(old: Dict[int, Optional[Rate]], new: Dict[int, Optional[Rate]]) -> set:
    """Branches whose assignment or rate differs."""
    return {
        b for b in set(old) | set(new)
        if b not in old or b not in new or old[b] != new[b]
    }


def _assignments(trainer: Trainer) -> Dict[int, Optional[Rate]]:
    return {tb.branch_id: tb.rate for tb in trainer.branches}


async def create_trainer(
    store: Store,
    caller: CallerContext,
    request: TrainerCreate,
) -> Trainer:
    require_staff(caller, "add trainers")
    rates = rates_by_branch(request.branches)
    if not can_manage_trainer(caller, rates):
        raise AccessDenied("You can only assign trainers to your own branches.")
    for branch_id in rates:
        if await store.branches.get(branch_id) is None:
            raise ValidationFailed("Select an existing branch.")
    await check_color(store, request.color, rates)

    trainer = await store.trainers.create(
        name=request.name,
        color=request.color,
        photo_url=request.photo_url,
        is_active=True,
        branch_rates=rates,
    )
    if trainer is None:
        raise PersistenceFailure("Failed to add the trainer.")

    logger.info(f"Trainer {trainer.id} '{trainer.name}' added at branches {trainer.branch_ids}")
    await log_action(
        store,
        caller,
        AuditAction.CREATE,
        AuditEntity.TRAINER,
        trainer.name,
        f"강사 '{trainer.name}'을(를) 추가했습니다.",
        trainer.branch_ids[0] if trainer.branch_ids else None,
    )
    return trainer


async def update_trainer(
    store: Store,
    caller: CallerContext,
    trainer_id: int,
    changes: TrainerUpdate,
) -> Tuple[Trainer, bool]:
    """
    Update a trainer's profile and branch rates.

    Managers may only change assignments at their own branches.

    Returns:
        (trainer, rates_changed); when rates changed the caller is expected
        to run rate propagation for this trainer
    """
    trainer = await load_trainer(store, caller, trainer_id)
    require_staff(caller, "edit trainers")

    old = _assignments(trainer)
    new = rates_by_branch(changes.branches) if changes.branches is not None else old
    touched = _changed_branches(old, new)
    if touched and not can_manage_trainer(caller, touched):
        raise AccessDenied("You can only change assignments at your own branches.")
    if not caller.covers_any_branch(trainer.branch_ids):
        raise AccessDenied("You cannot edit this trainer.")
    for branch_id in set(new) - set(old):
        if await store.branches.get(branch_id) is None:
            raise ValidationFailed("Select an existing branch.")

    color = changes.color or trainer.color
    if trainer.is_active and (color != trainer.color or touched):
        await check_color(store, color, new, exclude_id=trainer.id)

    rates_changed = {b: r for b, r in old.items() if r is not None} != {
        b: r for b, r in new.items() if r is not None
    }

    fields = changes.model_dump(exclude_unset=True, exclude={"branches"})
    if changes.branches is not None:
        fields["branch_rates"] = new
    updated = await store.trainers.update(trainer.id, TrainerPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the trainer.")

    if rates_changed:
        logger.info(f"Trainer {updated.id} branch rates changed: {updated.branch_rates}")
    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.TRAINER,
        updated.name,
        f"강사 '{updated.name}' 정보를 수정했습니다.",
        updated.branch_ids[0] if updated.branch_ids else None,
    )
    return updated, rates_changed


async def _detach_from_programs(store: Store, trainer_id: int) -> int:
    """Remove a trainer from every program's trainer list and session plan."""
    detached = 0
    for program in await store.programs.list():
        planned = program.session_trainers or {}
        if trainer_id not in program.trainer_ids and trainer_id not in planned.values():
            continue
        patch = ProgramPatch(
            trainer_ids=[t for t in program.trainer_ids if t != trainer_id],
            session_trainers={n: t for n, t in planned.items() if t != trainer_id} or None,
        )
        if await store.programs.update(program.id, patch) is None:
            raise PersistenceFailure("Failed to remove the trainer from a program.")
        detached += 1
    return detached


async def deactivate_trainer(store: Store, caller: CallerContext, trainer_id: int) -> Trainer:
    """Soft-delete a trainer and detach them from programs."""
    trainer = await load_trainer(store, caller, trainer_id)
    require_staff(caller, "remove trainers")
    if not can_manage_trainer(caller, trainer.branch_ids):
        raise AccessDenied("You cannot remove a trainer who also works at other branches.")
    if not trainer.is_active:
        raise PreconditionFailed("This trainer is already inactive.")

    updated = await store.trainers.update(trainer.id, TrainerPatch(is_active=False))
    if updated is None:
        raise PersistenceFailure("Failed to remove the trainer.")
    detached = await _detach_from_programs(store, updated.id)

    logger.info(f"Trainer {updated.id} deactivated, detached from {detached} program(s)")
    await log_action(
        store,
        caller,
        AuditAction.DELETE,
        AuditEntity.TRAINER,
        updated.name,
        f"강사 '{updated.name}'을(를) 비활성화했습니다.",
        updated.branch_ids[0] if updated.branch_ids else None,
    )
    return updated


async def restore_trainer(store: Store, caller: CallerContext, trainer_id: int) -> Trainer:
    trainer = await load_trainer(store, caller, trainer_id)
    require_staff(caller, "restore trainers")
    if not can_manage_trainer(caller, trainer.branch_ids):
        raise AccessDenied("You cannot restore this trainer.")
    if trainer.is_active:
        raise PreconditionFailed("This trainer is already active.")
    await check_color(store, trainer.color, trainer.branch_ids, exclude_id=trainer.id)

    updated = await store.trainers.update(trainer.id, TrainerPatch(is_active=True))
    if updated is None:
        raise PersistenceFailure("Failed to restore the trainer.")

    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.TRAINER,
        updated.name,
        f"강사 '{updated.name}'을(를) 복원했습니다.",
        updated.branch_ids[0] if updated.branch_ids else None,
    )
    return updated
