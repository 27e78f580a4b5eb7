"""
Tests for program registration, updates, renewal and reconciliation.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import add_session
from ptstudio.models import PercentageRate, ProgramStatus, RegistrationType, SessionStatus
from ptstudio.schemas.patches import ProgramPatch, TrainerPatch
from ptstudio.schemas.program import ProgramCreate, ProgramRenewal, ProgramUpdate
from ptstudio.services.errors import (
    AccessDenied,
    NotFound,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.programs import (
    create_program,
    delete_program,
    list_programs,
    load_program,
    re_register_program,
    reconcile,
    update_program,
)

APRIL_FIRST = date(2026, 4, 1)


def _request(studio, **kwargs):
    defaults = {
        "member_ids": [studio.minsu.id],
        "branch_id": studio.gangnam.id,
        "program_name": "PT 7회",
        "total_amount": Decimal("600000"),
        "total_sessions": 7,
        "assigned_trainer_id": studio.kim.id,
    }
    defaults.update(kwargs)
    return ProgramCreate(**defaults)


class TestProgramCreateSchema:
    def test_assigned_trainer_becomes_primary(self):
        request = ProgramCreate(trainer_ids=[3, 5, 7], assigned_trainer_id=5)
        assert request.trainer_ids == [5, 3, 7]

    def test_trainer_ids_kept_without_assignment(self):
        assert ProgramCreate(trainer_ids=[3, 5]).trainer_ids == [3, 5]


class TestCreateProgram:
    @pytest.mark.asyncio
    async def test_unit_price_and_defaults(self, store, studio):
        program = await create_program(store, studio.admin, _request(studio), today=APRIL_FIRST)

        assert program.unit_price == Decimal("85714")
        assert program.completed_sessions == 0
        assert program.status == ProgramStatus.ACTIVE
        assert program.registration_type == RegistrationType.NEW
        assert program.registration_date == APRIL_FIRST
        assert program.payment_date == APRIL_FIRST
        assert program.default_session_duration == 50
        assert program.trainer_ids == [studio.kim.id]

    @pytest.mark.asyncio
    async def test_prefilled_from_preset(self, store, studio):
        preset = await store.presets.create(
            name="PT 20회",
            total_amount=Decimal("1800000"),
            total_sessions=20,
            branch_id=None,
            default_session_duration=60,
            session_fees={"1": 50000},
        )
        request = ProgramCreate(
            member_ids=[studio.minsu.id],
            branch_id=studio.gangnam.id,
            preset_id=preset.id,
            trainer_ids=[studio.kim.id],
        )

        program = await create_program(store, studio.manager, request, today=APRIL_FIRST)

        assert program.program_name == "PT 20회"
        assert program.total_sessions == 20
        assert program.unit_price == Decimal("90000")
        assert program.default_session_duration == 60
        assert program.session_fees == {"1": 50000}
        assert program.fee_for_session(1) == Decimal("50000")

    @pytest.mark.asyncio
    async def test_preset_of_other_branch_rejected(self, store, studio):
        preset = await store.presets.create(
            name="홍대 PT", total_amount=Decimal("500000"), total_sessions=5, branch_id=studio.hongdae.id
        )
        request = ProgramCreate(
            member_ids=[studio.minsu.id], branch_id=studio.gangnam.id, preset_id=preset.id
        )
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, request)

    @pytest.mark.asyncio
    async def test_member_of_other_branch_rejected(self, store, studio):
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, _request(studio, member_ids=[studio.hyejin.id]))

    @pytest.mark.asyncio
    async def test_positive_session_count_required(self, store, studio):
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, _request(studio, total_sessions=0))

    @pytest.mark.asyncio
    async def test_name_required_without_preset(self, store, studio):
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, _request(studio, program_name=None))

    @pytest.mark.asyncio
    async def test_inactive_trainer_rejected(self, store, studio):
        await store.trainers.update(studio.lee.id, TrainerPatch(is_active=False))
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, _request(studio, assigned_trainer_id=studio.lee.id))

    @pytest.mark.asyncio
    async def test_trainer_of_other_branch_rejected(self, store, studio):
        request = _request(studio, member_ids=[studio.hyejin.id], branch_id=studio.hongdae.id)
        with pytest.raises(ValidationFailed):
            await create_program(store, studio.admin, request)

    @pytest.mark.asyncio
    async def test_manager_limited_to_own_branch(self, store, studio):
        with pytest.raises(AccessDenied):
            await create_program(store, studio.hongdae_manager, _request(studio))

    @pytest.mark.asyncio
    async def test_trainer_cannot_register(self, store, studio):
        with pytest.raises(AccessDenied):
            await create_program(store, studio.kim_caller, _request(studio))


class TestUpdateProgram:
    @pytest.mark.asyncio
    async def test_price_change_reprices_booked_sessions(self, store, studio):
        booked = await add_session(store, studio.program, studio.kim, session_number=2)
        completed = await add_session(
            store, studio.program, studio.kim, session_number=1, status=SessionStatus.COMPLETED
        )

        program = await update_program(
            store, studio.manager, studio.program.id, ProgramUpdate(total_amount=Decimal("1200000"))
        )

        assert program.unit_price == Decimal("120000")
        assert (await store.sessions.get(booked.id)).trainer_fee == Decimal("48000")
        assert (await store.sessions.get(completed.id)).trainer_fee == Decimal("40000")

    @pytest.mark.asyncio
    async def test_count_cannot_drop_below_completed(self, store, studio):
        for n in (1, 2):
            await add_session(store, studio.program, studio.kim, session_number=n, status=SessionStatus.COMPLETED)

        with pytest.raises(PreconditionFailed):
            await update_program(store, studio.admin, studio.program.id, ProgramUpdate(total_sessions=1))

    @pytest.mark.asyncio
    async def test_lowering_count_to_completed_expires(self, store, studio):
        for n in (1, 2):
            await add_session(store, studio.program, studio.kim, session_number=n, status=SessionStatus.COMPLETED)

        program = await update_program(store, studio.admin, studio.program.id, ProgramUpdate(total_sessions=2))

        assert program.unit_price == Decimal("500000")
        assert program.completed_sessions == 2
        assert program.status == ProgramStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_new_primary_trainer_keeps_others(self, store, studio):
        await update_program(
            store, studio.admin, studio.program.id, ProgramUpdate(trainer_ids=[studio.kim.id, studio.lee.id])
        )
        program = await update_program(
            store, studio.admin, studio.program.id, ProgramUpdate(assigned_trainer_id=studio.lee.id)
        )
        assert program.trainer_ids == [studio.lee.id, studio.kim.id]

    @pytest.mark.asyncio
    async def test_added_trainer_must_serve_program_branch(self, store, studio):
        park = await store.trainers.create(
            name="박코치",
            color="#22c55e",
            is_active=True,
            branch_rates={studio.hongdae.id: PercentageRate(Decimal("0.5"))},
        )
        with pytest.raises(ValidationFailed):
            await update_program(
                store, studio.admin, studio.program.id, ProgramUpdate(trainer_ids=[studio.kim.id, park.id])
            )

        program = await store.programs.get(studio.program.id)
        assert program.trainer_ids == [studio.kim.id]

    @pytest.mark.asyncio
    async def test_trainer_cannot_update(self, store, studio):
        with pytest.raises(AccessDenied):
            await update_program(store, studio.kim_caller, studio.program.id, ProgramUpdate(memo="메모"))


class TestDeleteAndRenew:
    @pytest.mark.asyncio
    async def test_delete_removes_sessions(self, store, studio):
        first = await add_session(store, studio.program, studio.kim, session_number=1)
        second = await add_session(store, studio.program, studio.kim, session_number=2)

        await delete_program(store, studio.manager, studio.program.id)

        assert await store.programs.get(studio.program.id) is None
        assert await store.sessions.get(first.id) is None
        assert await store.sessions.get(second.id) is None

    @pytest.mark.asyncio
    async def test_re_register_starts_over(self, store, studio):
        await store.programs.update(
            studio.program.id, ProgramPatch(completed_sessions=10, status=ProgramStatus.EXPIRED)
        )

        renewed = await re_register_program(store, studio.admin, studio.program.id, today=APRIL_FIRST)

        assert renewed.id != studio.program.id
        assert renewed.registration_type == RegistrationType.RENEWAL
        assert renewed.completed_sessions == 0
        assert renewed.status == ProgramStatus.ACTIVE
        assert renewed.member_ids == [studio.minsu.id, studio.jiyoung.id]
        assert renewed.trainer_ids == [studio.kim.id]
        assert renewed.branch_id == studio.gangnam.id
        assert renewed.registration_date == APRIL_FIRST
        assert renewed.unit_price == Decimal("100000")

        source = await store.programs.get(studio.program.id)
        assert source.completed_sessions == 10
        assert source.status == ProgramStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_re_register_with_new_terms(self, store, studio):
        renewal = ProgramRenewal(total_amount=Decimal("1500000"), total_sessions=20)
        renewed = await re_register_program(store, studio.admin, studio.program.id, renewal, today=APRIL_FIRST)
        assert renewed.unit_price == Decimal("75000")
        assert renewed.program_name == "PT 10회"


class TestReconcileAndList:
    @pytest.mark.asyncio
    async def test_reconcile_after_lost_completions(self, store, studio):
        for n in (1, 2, 3):
            await add_session(store, studio.program, studio.kim, session_number=n, status=SessionStatus.COMPLETED)
        await store.programs.update(
            studio.program.id, ProgramPatch(completed_sessions=10, status=ProgramStatus.EXPIRED)
        )

        program, changed = await reconcile(store, studio.manager, studio.program.id)

        assert changed
        assert program.completed_sessions == 3
        assert program.status == ProgramStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_listing_is_scoped(self, store, studio):
        assert [p.id for p in await list_programs(store, studio.kim_caller)] == [studio.program.id]
        assert await list_programs(store, studio.lee_caller) == []
        assert await list_programs(store, studio.hongdae_manager) == []
        assert await list_programs(store, studio.admin, member_id=studio.hyejin.id) == []

    @pytest.mark.asyncio
    async def test_unlisted_trainer_cannot_open(self, store, studio):
        with pytest.raises(NotFound):
            await reconcile(store, studio.lee_caller, studio.program.id)

    @pytest.mark.asyncio
    async def test_listed_trainer_cannot_see_program_outside_their_branches(self, store, studio):
        hongdae_program = await store.programs.create(
            member_ids=[studio.hyejin.id],
            program_name="PT 5회",
            registration_type=RegistrationType.NEW,
            registration_date=date(2026, 3, 2),
            payment_date=date(2026, 3, 2),
            total_amount=Decimal("400000"),
            total_sessions=5,
            unit_price=Decimal("80000"),
            completed_sessions=0,
            status=ProgramStatus.ACTIVE,
            trainer_ids=[studio.kim.id],
            branch_id=studio.hongdae.id,
            default_session_duration=50,
        )

        assert [p.id for p in await list_programs(store, studio.kim_caller)] == [studio.program.id]
        with pytest.raises(NotFound):
            await load_program(store, studio.kim_caller, hongdae_program.id)
