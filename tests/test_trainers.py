"""
Tests for trainer management.
"""

from decimal import Decimal

import pytest

from ptstudio.models import FixedRate, PercentageRate, RateType
from ptstudio.schemas.trainer import BranchRateInput, TrainerCreate, TrainerUpdate
from ptstudio.services.errors import AccessDenied, PreconditionFailed, ValidationFailed
from ptstudio.services.trainers import (
    create_trainer,
    deactivate_trainer,
    list_trainers,
    restore_trainer,
    update_trainer,
)


def _percent(branch_id, value):
    return BranchRateInput(branch_id=branch_id, type=RateType.PERCENTAGE, value=Decimal(value))


def _fixed(branch_id, value):
    return BranchRateInput(branch_id=branch_id, type=RateType.FIXED, value=Decimal(value))


class TestBranchRateInput:
    def test_type_and_value_together(self):
        with pytest.raises(ValueError):
            BranchRateInput(branch_id=1, type=RateType.FIXED)

    def test_percentage_is_a_fraction(self):
        with pytest.raises(ValueError):
            BranchRateInput(branch_id=1, type=RateType.PERCENTAGE, value=Decimal("40"))

    def test_assignment_without_rate(self):
        assert BranchRateInput(branch_id=1).to_rate() is None


class TestCreateTrainer:
    @pytest.mark.asyncio
    async def test_manager_adds_trainer_at_own_branch(self, store, studio):
        request = TrainerCreate(name="박코치", color="#22c55e", branches=[_percent(studio.gangnam.id, "0.35")])

        trainer = await create_trainer(store, studio.manager, request)

        assert trainer.is_active
        assert trainer.branch_rates == {studio.gangnam.id: PercentageRate(Decimal("0.35"))}

    @pytest.mark.asyncio
    async def test_manager_cannot_use_other_branch(self, store, studio):
        request = TrainerCreate(name="박코치", color="#22c55e", branches=[_percent(studio.hongdae.id, "0.35")])
        with pytest.raises(AccessDenied):
            await create_trainer(store, studio.manager, request)

    @pytest.mark.asyncio
    async def test_trainer_cannot_add_trainers(self, store, studio):
        request = TrainerCreate(name="박코치", color="#22c55e", branches=[_percent(studio.gangnam.id, "0.35")])
        with pytest.raises(AccessDenied):
            await create_trainer(store, studio.kim_caller, request)

    @pytest.mark.asyncio
    async def test_color_taken_at_shared_branch(self, store, studio):
        request = TrainerCreate(name="박코치", color="#EF4444", branches=[_percent(studio.gangnam.id, "0.35")])
        with pytest.raises(ValidationFailed):
            await create_trainer(store, studio.admin, request)

    @pytest.mark.asyncio
    async def test_color_free_at_other_branch(self, store, studio):
        request = TrainerCreate(name="박코치", color="#ef4444", branches=[_percent(studio.hongdae.id, "0.35")])
        trainer = await create_trainer(store, studio.admin, request)
        assert trainer.color == "#ef4444"


class TestUpdateTrainer:
    @pytest.mark.asyncio
    async def test_rate_change_is_reported(self, store, studio):
        changes = TrainerUpdate(branches=[_fixed(studio.gangnam.id, "35000"), _percent(studio.hongdae.id, "0.5")])

        trainer, rates_changed = await update_trainer(store, studio.manager, studio.lee.id, changes)

        assert rates_changed
        assert trainer.branch_rates[studio.gangnam.id] == FixedRate(Decimal("35000"))
        assert trainer.branch_rates[studio.hongdae.id] == PercentageRate(Decimal("0.5"))

    @pytest.mark.asyncio
    async def test_profile_change_keeps_rates(self, store, studio):
        trainer, rates_changed = await update_trainer(
            store, studio.admin, studio.kim.id, TrainerUpdate(name="김수석")
        )
        assert not rates_changed
        assert trainer.name == "김수석"
        assert trainer.branch_rates == {studio.gangnam.id: PercentageRate(Decimal("0.4"))}

    @pytest.mark.asyncio
    async def test_manager_cannot_touch_other_branch_rate(self, store, studio):
        changes = TrainerUpdate(branches=[_fixed(studio.gangnam.id, "30000"), _percent(studio.hongdae.id, "0.6")])
        with pytest.raises(AccessDenied):
            await update_trainer(store, studio.manager, studio.lee.id, changes)

    @pytest.mark.asyncio
    async def test_color_conflict_on_update(self, store, studio):
        with pytest.raises(ValidationFailed):
            await update_trainer(store, studio.admin, studio.lee.id, TrainerUpdate(color="#EF4444"))


class TestDeactivateTrainer:
    @pytest.mark.asyncio
    async def test_detaches_from_programs(self, store, studio):
        trainer = await deactivate_trainer(store, studio.admin, studio.kim.id)

        assert not trainer.is_active
        program = await store.programs.get(studio.program.id)
        assert program.trainer_ids == []
        assert [t.id for t in await list_trainers(store, studio.admin)] == [studio.lee.id]
        assert len(await list_trainers(store, studio.admin, include_inactive=True)) == 2

    @pytest.mark.asyncio
    async def test_twice_is_refused(self, store, studio):
        await deactivate_trainer(store, studio.admin, studio.kim.id)
        with pytest.raises(PreconditionFailed):
            await deactivate_trainer(store, studio.admin, studio.kim.id)

    @pytest.mark.asyncio
    async def test_manager_cannot_remove_shared_trainer(self, store, studio):
        with pytest.raises(AccessDenied):
            await deactivate_trainer(store, studio.manager, studio.lee.id)

    @pytest.mark.asyncio
    async def test_restore(self, store, studio):
        await deactivate_trainer(store, studio.admin, studio.kim.id)
        trainer = await restore_trainer(store, studio.manager, studio.kim.id)
        assert trainer.is_active

    @pytest.mark.asyncio
    async def test_restore_blocked_by_color_reuse(self, store, studio):
        await deactivate_trainer(store, studio.admin, studio.kim.id)
        await create_trainer(
            store,
            studio.admin,
            TrainerCreate(name="박코치", color="#ef4444", branches=[_percent(studio.gangnam.id, "0.35")]),
        )
        with pytest.raises(ValidationFailed):
            await restore_trainer(store, studio.admin, studio.kim.id)


class TestTrainerVisibility:
    @pytest.mark.asyncio
    async def test_trainer_sees_colleagues_at_shared_branch(self, store, studio):
        names = [t.name for t in await list_trainers(store, studio.kim_caller)]
        assert names == ["김코치", "이코치"]

    @pytest.mark.asyncio
    async def test_manager_sees_own_branch(self, store, studio):
        trainers = await list_trainers(store, studio.hongdae_manager)
        assert [t.id for t in trainers] == [studio.lee.id]
