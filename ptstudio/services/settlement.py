"""
Trainer settlement.

Totals are computed in memory over completed sessions whose date falls in
an inclusive range. A session row counts once per attending member record.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from ptstudio.db.repository import Store
from ptstudio.models import MemberProgram, SessionStatus, Trainer, TrainingSession
from ptstudio.services.errors import AccessDenied, ValidationFailed
from ptstudio.services.scope import (
    CallerContext,
    can_view_trainer,
    ensure_visible,
    require_approved,
    visible,
    visible_sessions,
)

logger = logging.getLogger(__name__)


@dataclass
class TrainerStat:
    """Settlement totals for one trainer."""

    trainer_id: int
    trainer_name: str
    session_count: int = 0
    total_fee: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")


@dataclass
class TrainerSettlement:
    """One trainer's totals plus the sessions behind them, newest first."""

    stat: TrainerStat
    sessions: List[TrainingSession] = field(default_factory=list)


@dataclass
class SettlementSummary:
    trainer_count: int = 0
    session_count: int = 0
    total_fee: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")


def _in_range(
    session,
    start: date,
    end: date,
    programs: Optional[Mapping[int, object]],
    branch_id: Optional[int],
) -> bool:
    if session.status != SessionStatus.COMPLETED:
        return False
    if not start <= session.date <= end:
        return False
    if branch_id is not None:
        program = (programs or {}).get(session.program_id)
        if program is None or program.branch_id != branch_id:
            return False
    return True


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationFailed("The start date must not be after the end date.")


def aggregate(
    sessions: Iterable,
    trainers: Iterable,
    start: date,
    end: date,
    programs: Optional[Mapping[int, object]] = None,
    branch_id: Optional[int] = None,
) -> List[TrainerStat]:
    """
    Per-trainer session count, fee and revenue over completed sessions.

    Args:
        sessions: Sessions to consider
        trainers: Trainers to report; every one appears, idle ones with zeros
        start: First day of the period (inclusive)
        end: Last day of the period (inclusive)
        programs: program_id -> program, required for the branch filter
        branch_id: Only count sessions of programs at this branch

    Returns:
        Stats sorted by total_fee, highest first
    """
    stats: Dict[int, TrainerStat] = {
        t.id: TrainerStat(trainer_id=t.id, trainer_name=t.name) for t in trainers
    }

    for session in sessions:
        stat = stats.get(session.trainer_id)
        if stat is None or not _in_range(session, start, end, programs, branch_id):
            continue
        stat.session_count += 1
        stat.total_fee += Decimal(session.trainer_fee or 0)
        stat.total_revenue += Decimal(session.session_fee or 0)

    return sorted(stats.values(), key=lambda s: s.total_fee, reverse=True)


def settle_trainer(
    sessions: Iterable,
    trainer,
    start: date,
    end: date,
    programs: Optional[Mapping[int, object]] = None,
    branch_id: Optional[int] = None,
) -> TrainerSettlement:
    """Settlement detail for a single trainer."""
    own = [
        s for s in sessions
        if s.trainer_id == trainer.id and _in_range(s, start, end, programs, branch_id)
    ]
    stat = aggregate(own, [trainer], start, end, programs, branch_id)[0]
    own.sort(key=lambda s: (s.date, s.start_time), reverse=True)
    return TrainerSettlement(stat=stat, sessions=own)


def summarize(stats: Iterable[TrainerStat]) -> SettlementSummary:
    summary = SettlementSummary()
    for stat in stats:
        summary.trainer_count += 1
        summary.session_count += stat.session_count
        summary.total_fee += stat.total_fee
        summary.total_revenue += stat.total_revenue
    return summary


async def _scoped_rows(
    store: Store,
    caller: CallerContext,
    start: date,
    end: date,
    branch_id: Optional[int],
):
    require_approved(caller)
    _check_range(start, end)
    if branch_id is not None and not caller.covers_branch(branch_id):
        raise AccessDenied("You cannot view settlement for this branch.")

    sessions = await store.sessions.list(
        TrainingSession.status == SessionStatus.COMPLETED,
        TrainingSession.date >= start,
        TrainingSession.date <= end,
    )
    program_ids = {s.program_id for s in sessions}
    programs = {
        p.id: p
        for p in await store.programs.list(MemberProgram.id.in_(program_ids))
    } if program_ids else {}
    return visible_sessions(caller, sessions, programs), programs


async def settlement_report(
    store: Store,
    caller: CallerContext,
    start: date,
    end: date,
    branch_id: Optional[int] = None,
) -> List[TrainerStat]:
    """
    Settlement for every trainer the caller can see.

    Trainers only ever get their own row. Inactive trainers are listed
    only when they have sessions in the period.
    """
    sessions, programs = await _scoped_rows(store, caller, start, end, branch_id)

    if caller.is_trainer:
        trainers = await store.trainers.list(Trainer.id == caller.trainer_profile_id)
    elif caller.is_admin or caller.is_manager:
        trainers = visible(
            await store.trainers.list(),
            lambda t: can_view_trainer(caller, t),
        )
    else:
        raise AccessDenied("You cannot view settlement.")

    worked = {s.trainer_id for s in sessions}
    trainers = [t for t in trainers if t.is_active or t.id in worked]
    if branch_id is not None:
        trainers = [t for t in trainers if branch_id in t.branch_ids or t.id in worked]

    stats = aggregate(sessions, trainers, start, end, programs, branch_id)
    logger.debug(f"Settlement {start}..{end} branch={branch_id}: {len(stats)} trainer(s)")
    return stats


async def trainer_settlement(
    store: Store,
    caller: CallerContext,
    trainer_id: int,
    start: date,
    end: date,
    branch_id: Optional[int] = None,
) -> TrainerSettlement:
    """Settlement detail for one trainer; trainers can only open their own."""
    require_approved(caller)
    trainer = ensure_visible(
        await store.trainers.get(trainer_id),
        lambda t: can_view_trainer(caller, t),
        "Trainer",
    )
    if caller.is_trainer and trainer.id != caller.trainer_profile_id:
        raise AccessDenied("Trainers can only view their own settlement.")

    sessions, programs = await _scoped_rows(store, caller, start, end, branch_id)
    return settle_trainer(sessions, trainer, start, end, programs, branch_id)
