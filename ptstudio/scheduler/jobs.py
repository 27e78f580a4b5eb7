"""
Background job definitions using APScheduler.

Jobs include:
- Program ledger reconciliation
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ptstudio.config import settings
from ptstudio.db import Store, get_db_context
from ptstudio.models import MemberProgram, ProgramStatus
from ptstudio.services.errors import PersistenceFailure
from ptstudio.services.ledger import reconcile_program

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def reconcile_all_programs(store: Store) -> int:
    """Recount every non-suspended program. Returns how many were corrected."""
    corrected = 0
    programs = await store.programs.list(MemberProgram.status != ProgramStatus.SUSPENDED)
    for program_id in [p.id for p in programs]:
        program = await store.programs.get(program_id)
        if program is None:
            continue
        try:
            _, changed = await reconcile_program(store, program)
        except PersistenceFailure as e:
            logger.warning(f"Reconciliation of program {program_id} failed: {e.message}")
            continue
        corrected += int(changed)
    return corrected


async def ledger_reconciliation_job():
    """Bring program completed counts in line with their sessions."""
    logger.debug("Running ledger reconciliation job")
    try:
        async with get_db_context() as db:
            corrected = await reconcile_all_programs(Store(db))
            if corrected:
                logger.info(f"Ledger reconciliation job: corrected {corrected} programs")
    except Exception as e:
        logger.error(f"Ledger reconciliation job error: {e}")


def setup_scheduler():
    """
    Configure and add all scheduled jobs.

    Called during application startup.
    """
    scheduler.add_job(
        ledger_reconciliation_job,
        trigger=IntervalTrigger(minutes=settings.reconcile_interval_minutes),
        id="ledger_reconciliation",
        name="Reconcile program session counts",
        replace_existing=True,
    )

    logger.info("Scheduler configured with jobs")
