"""
Session lifecycle: booking, rescheduling, completion, reversal, deletion.

    booked ──complete (after start time)──▶ completed
      ▲                                        │
      └───────────revert (admin only)──────────┘
    either state ──delete──▶ gone

The trainer fee is priced when a session is booked or its trainer changes
and kept as-is on completion. Completing a session recounts its program
through the ledger; reverting or deleting does not (see reconcile_program).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from ptstudio.config import settings
from ptstudio.db.repository import Store
from ptstudio.models import (
    AuditAction,
    AuditEntity,
    MemberProgram,
    SessionStatus,
    Trainer,
    TrainingSession,
)
from ptstudio.schemas.patches import SessionPatch
from ptstudio.schemas.session import SessionBook, SessionEdit
from ptstudio.services.errors import (
    AccessDenied,
    PersistenceFailure,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.ledger import on_session_completed
from ptstudio.services.rates import FeeQuote, quote_session
from ptstudio.services.scope import (
    CallerContext,
    can_manage_branch_data,
    can_view_program,
    can_view_session,
    can_work_session,
    ensure_visible,
    require_admin,
    require_approved,
    visible_sessions,
)
from ptstudio.utils.audit import log_action

logger = logging.getLogger(__name__)


@dataclass
class BookingReport:
    """Outcome of a booking: one session per member, some may have failed."""

    sessions: List[TrainingSession] = field(default_factory=list)
    failed_member_ids: List[int] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_member_ids)


def studio_now() -> datetime:
    return datetime.now(ZoneInfo(settings.timezone))


def session_start(session) -> datetime:
    """Scheduled start of a session in the studio timezone."""
    return datetime.combine(session.date, session.start_time, tzinfo=ZoneInfo(settings.timezone))


def pricing_fields(quote: FeeQuote) -> dict:
    return {
        "trainer_fee": quote.fee,
        "rate_type": quote.rate.type,
        "rate_value": quote.rate.value,
    }


def _label(session) -> str:
    return f"세션 {session.session_number}회차"


def _when(session) -> str:
    return f"{session.date.isoformat()} {session.start_time.strftime('%H:%M')}"


def _check_attendees(program: MemberProgram, member_ids: List[int]) -> None:
    if not member_ids:
        raise ValidationFailed("Select at least one member.")
    outsiders = [m for m in member_ids if m not in program.member_ids]
    if outsiders:
        raise ValidationFailed("Attending members must belong to the program.")


async def _bookable_trainer(
    store: Store,
    caller: CallerContext,
    program: MemberProgram,
    trainer_id: Optional[int],
) -> Trainer:
    if trainer_id is None:
        raise ValidationFailed("Select a trainer for this session.")
    trainer = await store.trainers.get(trainer_id)
    if trainer is None:
        raise ValidationFailed("The selected trainer does not exist.")
    if not trainer.is_active:
        raise ValidationFailed("Inactive trainers cannot be booked.")
    if (
        not can_manage_branch_data(caller, program.branch_id)
        and trainer.id != caller.trainer_profile_id
    ):
        raise AccessDenied("Trainers can only book sessions for themselves.")
    return trainer


async def _next_session_number(store: Store, program: MemberProgram) -> int:
    used = set(await store.sessions.used_numbers(program.id))
    for number in range(1, program.total_sessions + 1):
        if number not in used:
            return number
    raise PreconditionFailed("Every session of this program is already scheduled.")


async def load_session(
    store: Store,
    caller: CallerContext,
    session_id: int,
) -> Tuple[TrainingSession, MemberProgram]:
    """Fetch a session and its program, or NotFound if out of scope."""
    require_approved(caller)
    session = await store.sessions.get(session_id)
    program = await store.programs.get(session.program_id) if session else None
    ensure_visible(session, lambda s: can_view_session(caller, s, program), "Session")
    if program is None:
        raise PreconditionFailed("The session's program no longer exists.")
    return session, program


async def list_sessions(
    store: Store,
    caller: CallerContext,
    start: Optional[date] = None,
    end: Optional[date] = None,
    program_id: Optional[int] = None,
    trainer_id: Optional[int] = None,
) -> List[TrainingSession]:
    """Sessions visible to the caller, ordered by date and start time."""
    require_approved(caller)
    criteria = []
    if start:
        criteria.append(TrainingSession.date >= start)
    if end:
        criteria.append(TrainingSession.date <= end)
    if program_id:
        criteria.append(TrainingSession.program_id == program_id)
    if trainer_id:
        criteria.append(TrainingSession.trainer_id == trainer_id)

    sessions = await store.sessions.list(*criteria)
    program_ids = {s.program_id for s in sessions}
    programs = {
        p.id: p
        for p in await store.programs.list(MemberProgram.id.in_(program_ids))
    } if program_ids else {}

    result = visible_sessions(caller, sessions, programs)
    result.sort(key=lambda s: (s.date, s.start_time, s.session_number))
    return result


async def book_sessions(
    store: Store,
    caller: CallerContext,
    request: SessionBook,
) -> BookingReport:
    """
    Book one session per attending member.

    Each member's record is written on its own; records that fail are
    reported in failed_member_ids and the others are kept.
    """
    require_approved(caller)
    program = ensure_visible(
        await store.programs.get(request.program_id),
        lambda p: can_view_program(caller, p),
        "Program",
    )
    if not can_work_session(caller, None, program):
        raise AccessDenied("You cannot book sessions for this program.")

    _check_attendees(program, request.attended_member_ids)

    if request.session_number is not None:
        session_number = request.session_number
        if not 1 <= session_number <= program.total_sessions:
            raise ValidationFailed(
                f"Session number must be between 1 and {program.total_sessions}."
            )
    else:
        session_number = await _next_session_number(store, program)

    trainer_id = request.trainer_id or program.trainer_for_session(session_number)
    trainer = await _bookable_trainer(store, caller, program, trainer_id)
    quote = quote_session(trainer, program)

    fields = {
        "program_id": program.id,
        "session_number": session_number,
        "trainer_id": trainer.id,
        "date": request.date,
        "start_time": request.start_time,
        "duration": request.duration or program.default_session_duration,
        "status": SessionStatus.BOOKED,
        **pricing_fields(quote),
    }
    program_name, branch_id = program.program_name, program.branch_id

    report = BookingReport()
    for member_id in request.attended_member_ids:
        session = await store.sessions.create(attended_member_ids=[member_id], **fields)
        if session is None:
            logger.error(f"Booking failed for member {member_id} in program {program.id}")
            report.failed_member_ids.append(member_id)
        else:
            report.sessions.append(session)

    if not report.sessions:
        raise PersistenceFailure("Failed to book the session.")
    if report.partial:
        # a failed write rolled back the session and expired loaded objects
        for session in report.sessions:
            await store.sessions.reload(session)

    first = report.sessions[0]
    logger.info(
        f"Booked session #{session_number} of program {first.program_id} "
        f"for {len(report.sessions)} member(s), fee={quote.fee}"
    )
    await log_action(
        store,
        caller,
        AuditAction.CREATE,
        AuditEntity.PROGRAM,
        _label(first),
        f"'{program_name}' {_when(first)} 수업을 예약했습니다.",
        branch_id,
    )
    return report


async def edit_session(
    store: Store,
    caller: CallerContext,
    session_id: int,
    changes: SessionEdit,
) -> TrainingSession:
    """Reschedule a booked session. A trainer change reprices it."""
    session, program = await load_session(store, caller, session_id)
    if not can_work_session(caller, session, program):
        raise AccessDenied("You cannot change this session.")
    if session.is_completed:
        raise PreconditionFailed(
            "Completed sessions cannot be rescheduled. Revert the completion first."
        )

    fields = changes.model_dump(exclude_unset=True, exclude_none=True)
    if "attended_member_ids" in fields:
        _check_attendees(program, fields["attended_member_ids"])
    if fields.get("trainer_id", session.trainer_id) != session.trainer_id:
        trainer = await _bookable_trainer(store, caller, program, fields["trainer_id"])
        fields.update(pricing_fields(quote_session(trainer, program)))
    if not fields:
        return session

    updated = await store.sessions.update(session.id, SessionPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the session.")

    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.PROGRAM,
        _label(updated),
        f"'{program.program_name}' 수업 일정을 {_when(updated)}(으)로 변경했습니다.",
        program.branch_id,
    )
    return updated


async def complete_session(
    store: Store,
    caller: CallerContext,
    session_id: int,
    attended_member_ids: List[int],
    session_fee: Optional[Decimal] = None,
    now: Optional[datetime] = None,
) -> Tuple[TrainingSession, MemberProgram]:
    """
    Mark a session as completed.

    Only allowed once the scheduled start time has passed. The trainer fee
    priced at booking is kept. The session fee defaults to the program's
    per-session fee, then its fixed trainer fee, then the trainer fee.
    Completing an already completed session keeps its recorded fee
    unless a new one is given.

    Returns:
        (session, program) after the ledger update
    """
    session, program = await load_session(store, caller, session_id)
    if not can_work_session(caller, session, program):
        raise AccessDenied("You cannot complete this session.")

    now = now or studio_now()
    if now < session_start(session):
        raise PreconditionFailed(
            f"This session starts at {_when(session)} and cannot be completed before then."
        )
    _check_attendees(program, attended_member_ids)

    was_completed = session.is_completed
    if session_fee is None and was_completed:
        session_fee = session.session_fee
    if session_fee is None:
        session_fee = program.fee_for_session(session.session_number)
    if session_fee is None:
        session_fee = session.trainer_fee

    updated = await store.sessions.update(
        session.id,
        SessionPatch(
            status=SessionStatus.COMPLETED,
            attended_member_ids=attended_member_ids,
            completed_at=now,
            session_fee=session_fee,
        ),
    )
    if updated is None:
        raise PersistenceFailure("Failed to complete the session.")

    if not was_completed:
        try:
            program = await on_session_completed(store, program)
        except PersistenceFailure:
            raise PersistenceFailure(
                "The session was completed, but the program's session count "
                "could not be updated."
            )

    logger.info(
        f"Session {updated.id} (#{updated.session_number} of program {program.id}) completed, "
        f"program at {program.completed_sessions}/{program.total_sessions}"
    )
    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.PROGRAM,
        _label(updated),
        f"'{_when(updated)}' 수업을 완료 처리했습니다.",
        program.branch_id,
    )
    return updated, program


async def revert_session(
    store: Store,
    caller: CallerContext,
    session_id: int,
) -> TrainingSession:
    """
    Undo a completion (admin only).

    The program's completed count is left as-is; call reconcile_program
    to recount it.
    """
    session, program = await load_session(store, caller, session_id)
    require_admin(caller, "revert a completed session")
    if not session.is_completed:
        raise PreconditionFailed("Only completed sessions can be reverted.")

    updated = await store.sessions.update(
        session.id,
        SessionPatch(status=SessionStatus.BOOKED, completed_at=None, session_fee=None),
    )
    if updated is None:
        raise PersistenceFailure("Failed to revert the session.")

    logger.info(f"Session {updated.id} reverted to booked")
    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.PROGRAM,
        _label(updated),
        f"'{_when(updated)}' 수업 완료를 취소했습니다.",
        program.branch_id,
    )
    return updated


async def delete_session(
    store: Store,
    caller: CallerContext,
    session_id: int,
) -> None:
    """Delete a session in any state. The program's count is not adjusted."""
    session, program = await load_session(store, caller, session_id)
    if not can_manage_branch_data(caller, program.branch_id):
        raise AccessDenied("You cannot delete this session.")

    label, when = _label(session), _when(session)
    if not await store.sessions.delete(session.id):
        raise PersistenceFailure("Failed to delete the session.")

    logger.info(f"Session {session_id} of program {program.id} deleted")
    await log_action(
        store,
        caller,
        AuditAction.DELETE,
        AuditEntity.PROGRAM,
        label,
        f"'{when}' 수업을 삭제했습니다.",
        program.branch_id,
    )


async def adjust_session_fee(
    store: Store,
    caller: CallerContext,
    session_id: int,
    session_fee: Decimal,
) -> TrainingSession:
    """Override the session fee recorded on a completed session."""
    session, program = await load_session(store, caller, session_id)
    if not can_manage_branch_data(caller, program.branch_id):
        raise AccessDenied("You cannot change the fee of this session.")
    if not session.is_completed:
        raise PreconditionFailed("The session fee can only be set on completed sessions.")

    updated = await store.sessions.update(session.id, SessionPatch(session_fee=session_fee))
    if updated is None:
        raise PersistenceFailure("Failed to update the session fee.")

    await log_action(
        store,
        caller,
        AuditAction.UPDATE,
        AuditEntity.PROGRAM,
        _label(updated),
        f"'{_when(updated)}' 수업료를 {session_fee:,.0f}원으로 수정했습니다.",
        program.branch_id,
    )
    return updated
