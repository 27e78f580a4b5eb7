"""
Program management: create, update, delete, re-register, reconcile.

unit_price is maintained here whenever total_amount or total_sessions
changes, and still-booked sessions are repriced with the new unit price.
Completed sessions keep the fee they were settled with.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from ptstudio.config import settings
from ptstudio.db.repository import Store
from ptstudio.models import (
    AuditAction,
    AuditEntity,
    Member,
    MemberProgram,
    ProgramStatus,
    RegistrationType,
    SessionStatus,
    TrainingSession,
)
from ptstudio.schemas.patches import ProgramPatch, SessionPatch
from ptstudio.schemas.program import (
    ProgramCreate,
    ProgramRenewal,
    ProgramUpdate,
    with_primary,
)
from ptstudio.services.errors import (
    AccessDenied,
    PersistenceFailure,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.ledger import reconcile_program
from ptstudio.services.rates import compute_fee, fee_changed, resolve_rate, unit_price_for
from ptstudio.services.scope import (
    CallerContext,
    can_manage_branch_data,
    can_view_member,
    can_view_preset,
    can_view_program,
    ensure_visible,
    require_approved,
    visible,
)
from ptstudio.utils.audit import log_action

logger = logging.getLogger(__name__)

PRESET_FIELDS = (
    "total_amount",
    "total_sessions",
    "default_session_duration",
    "fixed_trainer_fee",
    "session_fees",
)


def keyed_by_session(mapping: Optional[Dict[int, int]]) -> Optional[Dict[str, int]]:
    """Session-number maps are stored with string keys."""
    if mapping is None:
        return None
    return {str(k): int(v) for k, v in mapping.items()}


async def load_program(store: Store, caller: CallerContext, program_id: int) -> MemberProgram:
    require_approved(caller)
    return ensure_visible(
        await store.programs.get(program_id),
        lambda p: can_view_program(caller, p),
        "Program",
    )


async def list_programs(
    store: Store,
    caller: CallerContext,
    status: Optional[ProgramStatus] = None,
    branch_id: Optional[int] = None,
    member_id: Optional[int] = None,
) -> List[MemberProgram]:
    require_approved(caller)
    criteria = []
    if status:
        criteria.append(MemberProgram.status == status)
    if branch_id:
        criteria.append(MemberProgram.branch_id == branch_id)

    programs = visible(
        await store.programs.list(*criteria),
        lambda p: can_view_program(caller, p),
    )
    if member_id:
        programs = [p for p in programs if member_id in p.member_ids]
    return programs


async def _check_members(
    store: Store,
    caller: CallerContext,
    member_ids: List[int],
    branch_id: int,
) -> None:
    if not member_ids:
        raise ValidationFailed("Select at least one member.")
    members = await store.members.list(Member.id.in_(member_ids))
    found = {m.id: m for m in members if can_view_member(caller, m)}
    if len(found) != len(set(member_ids)):
        raise ValidationFailed("One or more selected members do not exist.")
    if any(m.branch_id != branch_id for m in found.values()):
        raise ValidationFailed("Members must belong to the program's branch.")


async def _check_trainers(store: Store, trainer_ids: List[int], branch_id: int) -> None:
    for trainer_id in trainer_ids:
        trainer = await store.trainers.get(trainer_id)
        if trainer is None or not trainer.is_active:
            raise ValidationFailed("Select active trainers only.")
        if branch_id not in trainer.branch_ids:
            raise ValidationFailed(f"{trainer.name} is not assigned to the program's branch.")


def _check_counts(total_sessions: Optional[int], total_amount) -> None:
    if total_sessions is None or total_sessions <= 0:
        raise ValidationFailed("The number of sessions must be positive.")
    if total_amount is None or total_amount < 0:
        raise ValidationFailed("Enter the total amount paid.")


async def _prefill(
    store: Store,
    caller: CallerContext,
    request: ProgramCreate,
) -> dict:
    """Request fields, with unset ones taken from the selected preset."""
    fields = request.model_dump(exclude={"preset_id", "assigned_trainer_id"})
    if request.preset_id is None:
        return fields

    preset = ensure_visible(
        await store.presets.get(request.preset_id),
        lambda p: can_view_preset(caller, p),
        "Preset",
    )
    if preset.branch_id is not None and preset.branch_id != request.branch_id:
        raise ValidationFailed("This preset belongs to another branch.")

    if not fields["program_name"]:
        fields["program_name"] = preset.name
    for name in PRESET_FIELDS:
        if fields[name] is None:
            fields[name] = getattr(preset, name)
    if fields["session_fees"] is not None:
        fields["session_fees"] = {int(k): v for k, v in fields["session_fees"].items()}
    return fields


async def create_program(
    store: Store,
    caller: CallerContext,
    request: ProgramCreate,
    today: Optional[date] = None,
) -> MemberProgram:
    """Register a purchased block of sessions."""
    require_approved(caller)
    if request.branch_id is None:
        raise ValidationFailed("Select a branch.")
    if not can_manage_branch_data(caller, request.branch_id):
        raise AccessDenied("You cannot register programs at this branch.")

    fields = await _prefill(store, caller, request)
    if not fields["program_name"]:
        raise ValidationFailed("Enter a program name.")
    _check_counts(fields["total_sessions"], fields["total_amount"])
    await _check_members(store, caller, fields["member_ids"], request.branch_id)
    await _check_trainers(store, fields["trainer_ids"], request.branch_id)

    today = today or date.today()
    fields["registration_date"] = fields["registration_date"] or today
    fields["payment_date"] = fields["payment_date"] or fields["registration_date"]
    fields["default_session_duration"] = (
        fields["default_session_duration"] or settings.default_session_duration
    )
    fields["session_fees"] = keyed_by_session(fields["session_fees"])
    fields["session_trainers"] = keyed_by_session(fields["session_trainers"])

    program = await store.programs.create(
        unit_price=unit_price_for(fields["total_amount"], fields["total_sessions"]),
        completed_sessions=0,
        **fields,
    )
    if program is None:
        raise PersistenceFailure("Failed to register the program.")

    logger.info(
        f"Program {program.id} '{program.program_name}' registered at branch {program.branch_id}, "
        f"{program.total_sessions} sessions at {program.unit_price}"
    )
    await log_action(
        store,
        caller,
        AuditAction.CREATE,
        AuditEntity.PROGRAM,
        program.program_name,
        f"'{program.program_name}' 프로그램을 등록했습니다. ({program.registration_type.value})",
        program.branch_id,
    )
    return program


async def reprice_booked_sessions(store: Store, program: MemberProgram) -> int:
    """Recompute fees of a program's booked sessions at its current unit price."""
    sessions = await store.sessions.list(
        TrainingSession.program_id == program.id,
        TrainingSession.status == SessionStatus.BOOKED,
    )
    pending = []
    for session in sessions:
        trainer = await store.trainers.get(session.trainer_id)
        rate = resolve_rate(trainer, program.branch_id) if trainer else None
        quote = compute_fee(program.unit_price, rate)
        if fee_changed(session.trainer_fee, session.rate, quote):
            pending.append((session.id, quote))

    repriced = 0
    for session_id, quote in pending:
        patch = SessionPatch(
            trainer_fee=quote.fee,
            rate_type=quote.rate.type,
            rate_value=quote.rate.value,
        )
        if await store.sessions.update(session_id, patch) is not None:
            repriced += 1
    if repriced:
        logger.info(f"Program {program.id}: {repriced} booked session(s) repriced")
    return repriced


async def update_program(
    store: Store,
    caller: CallerContext,
    program_id: int,
    changes: ProgramUpdate,
) -> MemberProgram:
    """
    Update a program.

    Changing the price or session count recomputes unit_price and reprices
    booked sessions. The session count cannot drop below the sessions
    already completed.
    """
    program = await load_program(store, caller, program_id)
    if not can_manage_branch_data(caller, program.branch_id):
        raise AccessDenied("You cannot change this program.")

    fields = changes.model_dump(exclude_unset=True, exclude={"assigned_trainer_id"})
    if changes.assigned_trainer_id is not None:
        base = changes.trainer_ids if changes.trainer_ids is not None else program.trainer_ids
        fields["trainer_ids"] = with_primary(base, changes.assigned_trainer_id)

    if "member_ids" in fields:
        await _check_members(store, caller, fields["member_ids"], program.branch_id)
    if "trainer_ids" in fields:
        await _check_trainers(store, fields["trainer_ids"] or [], program.branch_id)
        fields["trainer_ids"] = fields["trainer_ids"] or []
    for name in ("session_fees", "session_trainers"):
        if name in fields:
            fields[name] = keyed_by_session(fields[name])

    total_sessions = fields.get("total_sessions", program.total_sessions)
    total_amount = fields.get("total_amount", program.total_amount)
    _check_counts(total_sessions, total_amount)
    completed = await store.sessions.count_completed(program.id)
    if total_sessions < completed:
        raise PreconditionFailed(
            f"{completed} sessions are already completed; "
            f"the session count cannot be lower."
        )

    unit_price = unit_price_for(total_amount, total_sessions)
    price_changed = unit_price != program.unit_price
    count_changed = total_sessions != program.total_sessions
    fields["unit_price"] = unit_price

    updated = await store.programs.update(program.id, ProgramPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the program.")

    if price_changed:
        await reprice_booked_sessions(store, updated)
    if count_changed:
        updated, _ = await reconcile_program(store, updated)

    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.PROGRAM,
        updated.program_name,
        f"'{updated.program_name}' 프로그램 정보를 수정했습니다.",
        updated.branch_id,
    )
    return updated


async def delete_program(store: Store, caller: CallerContext, program_id: int) -> None:
    """Delete a program together with all of its sessions."""
    program = await load_program(store, caller, program_id)
    if not can_manage_branch_data(caller, program.branch_id):
        raise AccessDenied("You cannot delete this program.")

    name, branch_id = program.program_name, program.branch_id
    if not await store.programs.delete(program.id):
        raise PersistenceFailure("Failed to delete the program.")

    logger.info(f"Program {program_id} '{name}' deleted with its sessions")
    await log_action(
        store,
        caller,
        AuditAction.DELETE,
        AuditEntity.PROGRAM,
        name,
        f"'{name}' 프로그램과 관련 수업을 삭제했습니다.",
        branch_id,
    )


async def re_register_program(
    store: Store,
    caller: CallerContext,
    program_id: int,
    renewal: Optional[ProgramRenewal] = None,
    today: Optional[date] = None,
) -> MemberProgram:
    """
    Create a renewal of an existing program.

    The new program starts over (no completed sessions, status 유효) for the
    same members, trainers and branch. The original is left unchanged.
    """
    source = await load_program(store, caller, program_id)
    if not can_manage_branch_data(caller, source.branch_id):
        raise AccessDenied("You cannot re-register this program.")

    renewal = renewal or ProgramRenewal()
    registration_date = renewal.registration_date or today or date.today()
    total_sessions = renewal.total_sessions or source.total_sessions
    total_amount = (
        renewal.total_amount if renewal.total_amount is not None else source.total_amount
    )
    _check_counts(total_sessions, total_amount)

    program = await store.programs.create(
        member_ids=list(source.member_ids),
        program_name=renewal.program_name or source.program_name,
        registration_type=RegistrationType.RENEWAL,
        registration_date=registration_date,
        payment_date=renewal.payment_date or registration_date,
        total_amount=total_amount,
        total_sessions=total_sessions,
        unit_price=unit_price_for(total_amount, total_sessions),
        fixed_trainer_fee=source.fixed_trainer_fee,
        session_fees=dict(source.session_fees) if source.session_fees else None,
        completed_sessions=0,
        status=ProgramStatus.ACTIVE,
        trainer_ids=list(source.trainer_ids),
        session_trainers=dict(source.session_trainers) if source.session_trainers else None,
        branch_id=source.branch_id,
        default_session_duration=source.default_session_duration,
        memo=renewal.memo if renewal.memo is not None else source.memo,
    )
    if program is None:
        raise PersistenceFailure("Failed to re-register the program.")

    logger.info(f"Program {source.id} re-registered as {program.id}")
    await log_action(
        store,
        caller,
        AuditAction.CREATE,
        AuditEntity.PROGRAM,
        program.program_name,
        f"'{program.program_name}' 프로그램을 재등록했습니다.",
        program.branch_id,
    )
    return program


async def reconcile(
    store: Store,
    caller: CallerContext,
    program_id: int,
) -> Tuple[MemberProgram, bool]:
    """Recount a program's completed sessions on request."""
    program = await load_program(store, caller, program_id)
    if not can_manage_branch_data(caller, program.branch_id):
        raise AccessDenied("You cannot reconcile this program.")

    program, changed = await reconcile_program(store, program)
    if changed:
        await log_action(
            store,
            caller,
            AuditAction.UPDATE,
            AuditEntity.PROGRAM,
            program.program_name,
            f"'{program.program_name}' 완료 횟수를 {program.completed_sessions}회로 재계산했습니다.",
            program.branch_id,
        )
    return program, changed
