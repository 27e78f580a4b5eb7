"""
Tests for the scheduled ledger reconciliation.
"""

import pytest

from conftest import add_session
from ptstudio.models import ProgramStatus, SessionStatus
from ptstudio.schemas.patches import ProgramPatch
from ptstudio.scheduler import jobs


class TestReconcileAllPrograms:
    @pytest.mark.asyncio
    async def test_corrects_drifted_programs(self, store, studio):
        await add_session(store, studio.program, studio.kim, status=SessionStatus.COMPLETED)
        await store.programs.update(studio.program.id, ProgramPatch(completed_sessions=4))

        assert await jobs.reconcile_all_programs(store) == 1

        program = await store.programs.get(studio.program.id)
        assert program.completed_sessions == 1

    @pytest.mark.asyncio
    async def test_skips_suspended(self, store, studio):
        await store.programs.update(
            studio.program.id,
            ProgramPatch(completed_sessions=4, status=ProgramStatus.SUSPENDED),
        )

        assert await jobs.reconcile_all_programs(store) == 0

        program = await store.programs.get(studio.program.id)
        assert program.completed_sessions == 4

    @pytest.mark.asyncio
    async def test_consistent_programs_untouched(self, store, studio):
        assert await jobs.reconcile_all_programs(store) == 0


def test_setup_registers_job():
    jobs.setup_scheduler()
    job = jobs.scheduler.get_job("ledger_reconciliation")
    assert job is not None
    assert job.func is jobs.ledger_reconciliation_job
    jobs.scheduler.remove_job("ledger_reconciliation")
