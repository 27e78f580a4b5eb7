"""
Program ledger: completed-session counts and program status.

The completed count is always recomputed from the sessions table rather
than incremented, so concurrent completions or a failed write heal on the
next recount. Every completed row counts, so a group session booked for
two members uses two of the purchased sessions.
"""

import logging
from typing import Tuple

from ptstudio.db.repository import Store
from ptstudio.models import MemberProgram, ProgramStatus
from ptstudio.schemas.patches import ProgramPatch
from ptstudio.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)


def next_status(program: MemberProgram, completed: int) -> ProgramStatus:
    """Status after a completion: expired once every session is used."""
    if completed >= program.total_sessions:
        return ProgramStatus.EXPIRED
    return program.status


def reconciled_status(program: MemberProgram, completed: int) -> ProgramStatus:
    """Like next_status, but an expired program with sessions left is active again."""
    if program.total_sessions > 0 and completed >= program.total_sessions:
        return ProgramStatus.EXPIRED
    if program.status == ProgramStatus.EXPIRED:
        return ProgramStatus.ACTIVE
    return program.status


async def _write(
    store: Store,
    program: MemberProgram,
    completed: int,
    status: ProgramStatus,
) -> MemberProgram:
    if completed == program.completed_sessions and status == program.status:
        return program

    updated = await store.programs.update(
        program.id,
        ProgramPatch(completed_sessions=completed, status=status),
    )
    if updated is None:
        raise PersistenceFailure("Failed to update the program's session count.")
    return updated


async def on_session_completed(store: Store, program: MemberProgram) -> MemberProgram:
    """
    Recount a program after one of its sessions was completed.

    Never reactivates a suspended program; moves it to expired when all
    purchased sessions are used.
    """
    completed = await store.sessions.count_completed(program.id)
    status = next_status(program, completed)
    updated = await _write(store, program, completed, status)

    if status == ProgramStatus.EXPIRED:
        logger.info(f"Program {program.id} used all {program.total_sessions} sessions, expired")
    return updated


async def reconcile_program(store: Store, program: MemberProgram) -> Tuple[MemberProgram, bool]:
    """
    Bring completed_sessions and status back in line with the sessions table.

    Used after reverting or deleting completed sessions.

    Returns:
        (program, changed)
    """
    completed = await store.sessions.count_completed(program.id)
    status = reconciled_status(program, completed)
    changed = completed != program.completed_sessions or status != program.status
    if changed:
        logger.info(
            f"Reconciling program {program.id}: "
            f"{program.completed_sessions} -> {completed} completed, {program.status.value} -> {status.value}"
        )
    return await _write(store, program, completed, status), changed
