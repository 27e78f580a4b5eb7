"""
Rate-change propagation.

When a trainer's branch rates are edited, every session they teach is
repriced with the new rate. Sessions at branches where the trainer has no
rate configured are left alone. Runs after the trainer update has been
acknowledged, in its own database session, and is safe to re-run.
"""

import logging

from ptstudio.config import settings
from ptstudio.db import get_db_context
from ptstudio.db.repository import Store
from ptstudio.models import MemberProgram, Trainer
from ptstudio.schemas.patches import SessionPatch
from ptstudio.services.rates import compute_fee, fee_changed, resolve_rate

logger = logging.getLogger(__name__)


async def on_trainer_rate_changed(store: Store, trainer: Trainer) -> int:
    """
    Recompute fee and rate on all of a trainer's sessions.

    Args:
        store: Persistence store
        trainer: Trainer whose branch rates changed (already saved)

    Returns:
        Number of sessions rewritten
    """
    trainer_id = trainer.id
    sessions = await store.sessions.for_trainer(trainer_id)
    if not sessions:
        return 0

    program_ids = {s.program_id for s in sessions}
    programs = {
        p.id: p for p in await store.programs.list(MemberProgram.id.in_(program_ids))
    }

    # Snapshot everything needed before writing: a failed write expires loaded rows
    pending = []
    for session in sessions:
        if session.is_completed and not settings.restate_completed_fees:
            continue
        program = programs.get(session.program_id)
        if program is None:
            logger.debug(f"Session {session.id} has no program, skipped")
            continue
        rate = resolve_rate(trainer, program.branch_id)
        if rate is None:
            logger.debug(
                f"Trainer {trainer_id} has no rate at branch {program.branch_id}, "
                f"session {session.id} skipped"
            )
            continue
        quote = compute_fee(program.unit_price, rate)
        if fee_changed(session.trainer_fee, session.rate, quote):
            pending.append((session.id, quote))

    updated = 0
    for session_id, quote in pending:
        patch = SessionPatch(
            trainer_fee=quote.fee,
            rate_type=quote.rate.type,
            rate_value=quote.rate.value,
        )
        if await store.sessions.update(session_id, patch) is None:
            logger.error(f"Could not reprice session {session_id} for trainer {trainer_id}")
            continue
        updated += 1

    logger.info(f"Rate change for trainer {trainer_id}: {updated} session(s) repriced")
    return updated


async def propagate_rate_change(trainer_id: int) -> None:
    """Background entry point: reprice a trainer's sessions in a fresh db session."""
    try:
        async with get_db_context() as db:
            store = Store(db)
            trainer = await store.trainers.get(trainer_id)
            if trainer is None:
                logger.warning(f"Rate propagation: trainer {trainer_id} no longer exists")
                return
            await on_trainer_rate_changed(store, trainer)
    except Exception as e:
        logger.error(f"Rate propagation for trainer {trainer_id} failed: {e}")
