"""
Tests for branches, members, presets, user permissions and the audit log.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from ptstudio.models import UserRole
from ptstudio.schemas.directory import (
    BranchCreate,
    MemberCreate,
    MemberUpdate,
    PermissionUpdate,
    PresetCreate,
    PresetUpdate,
)
from ptstudio.services.errors import (
    AccessDenied,
    NotFound,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.directory import (
    create_branch,
    create_member,
    create_preset,
    delete_branch,
    delete_member,
    list_audit_logs,
    list_branches,
    list_members,
    list_presets,
    load_member,
    update_member,
    update_permissions,
    update_preset,
)
from ptstudio.services.scope import CallerContext


class TestBranches:
    @pytest.mark.asyncio
    async def test_admin_adds_branch(self, store, studio):
        branch = await create_branch(store, studio.admin, BranchCreate(name=" 잠실점 "))
        assert branch.name == "잠실점"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, store, studio):
        with pytest.raises(ValidationFailed):
            await create_branch(store, studio.admin, BranchCreate(name="강남점"))

    @pytest.mark.asyncio
    async def test_manager_cannot_add_branch(self, store, studio):
        with pytest.raises(AccessDenied):
            await create_branch(store, studio.manager, BranchCreate(name="잠실점"))

    @pytest.mark.asyncio
    async def test_referenced_branch_not_deleted(self, store, studio):
        with pytest.raises(PreconditionFailed):
            await delete_branch(store, studio.admin, studio.gangnam.id)

    @pytest.mark.asyncio
    async def test_unused_branch_deleted(self, store, studio):
        branch = await create_branch(store, studio.admin, BranchCreate(name="잠실점"))
        await delete_branch(store, studio.admin, branch.id)
        assert await store.branches.get(branch.id) is None

    @pytest.mark.asyncio
    async def test_manager_sees_own_branches(self, store, studio):
        assert [b.name for b in await list_branches(store, studio.manager)] == ["강남점"]


class TestMembers:
    @pytest.mark.asyncio
    async def test_trainer_sees_only_own_members(self, store, studio):
        members = await list_members(store, studio.kim_caller)
        assert [m.id for m in members] == [studio.minsu.id]

    @pytest.mark.asyncio
    async def test_other_members_are_not_found(self, store, studio):
        with pytest.raises(NotFound):
            await load_member(store, studio.kim_caller, studio.jiyoung.id)

    @pytest.mark.asyncio
    async def test_manager_sees_branch_members(self, store, studio):
        members = await list_members(store, studio.manager)
        assert {m.id for m in members} == {studio.minsu.id, studio.jiyoung.id}

    @pytest.mark.asyncio
    async def test_assigned_trainer_must_work_at_branch(self, store, studio):
        request = MemberCreate(name="수진", branch_id=studio.hongdae.id, assigned_trainer_id=studio.kim.id)
        with pytest.raises(ValidationFailed):
            await create_member(store, studio.admin, request)

    @pytest.mark.asyncio
    async def test_manager_adds_member(self, store, studio):
        request = MemberCreate(
            name="수진",
            contact="010-7777-8888",
            branch_id=studio.gangnam.id,
            assigned_trainer_id=studio.kim.id,
            exercise_goals=["체중 감량"],
        )
        member = await create_member(store, studio.manager, request)
        assert member.exercise_goals == ["체중 감량"]

    @pytest.mark.asyncio
    async def test_move_to_foreign_branch_refused(self, store, studio):
        with pytest.raises(AccessDenied):
            await update_member(store, studio.manager, studio.minsu.id, MemberUpdate(branch_id=studio.hongdae.id))

    @pytest.mark.asyncio
    async def test_member_in_program_not_deleted(self, store, studio):
        with pytest.raises(PreconditionFailed):
            await delete_member(store, studio.admin, studio.minsu.id)

    @pytest.mark.asyncio
    async def test_delete_member(self, store, studio):
        await delete_member(store, studio.admin, studio.hyejin.id)
        assert await store.members.get(studio.hyejin.id) is None


class TestPresets:
    @pytest.mark.asyncio
    async def test_manager_cannot_edit_global_preset(self, store, studio):
        preset = await create_preset(
            store, studio.admin, PresetCreate(name="PT 10회", total_amount=Decimal("900000"), total_sessions=10)
        )
        with pytest.raises(AccessDenied):
            await update_preset(store, studio.manager, preset.id, PresetUpdate(name="PT 10회 할인"))

    @pytest.mark.asyncio
    async def test_manager_owns_branch_preset(self, store, studio):
        preset = await create_preset(
            store,
            studio.manager,
            PresetCreate(
                name="강남 PT 20회",
                total_amount=Decimal("1600000"),
                total_sessions=20,
                branch_id=studio.gangnam.id,
                session_fees={1: 40000},
            ),
        )
        assert preset.session_fees == {"1": 40000}

        updated = await update_preset(store, studio.manager, preset.id, PresetUpdate(total_sessions=16))
        assert updated.total_sessions == 16

    @pytest.mark.asyncio
    async def test_branch_listing_includes_global(self, store, studio):
        await create_preset(
            store, studio.admin, PresetCreate(name="공통", total_amount=Decimal("500000"), total_sessions=5)
        )
        await create_preset(
            store,
            studio.admin,
            PresetCreate(name="홍대", total_amount=Decimal("500000"), total_sessions=5, branch_id=studio.hongdae.id),
        )

        presets = await list_presets(store, studio.manager, branch_id=studio.gangnam.id)

        assert [p.name for p in presets] == ["공통"]


@pytest_asyncio.fixture
async def accounts(store, studio):
    admin = await store.users.create(
        email="admin@ptstudio.local", password_hash="x", name="관리자", role=UserRole.ADMIN,
    )
    newcomer = await store.users.create(email="new@ptstudio.local", password_hash="x", name="신입")
    return admin, newcomer


class TestPermissions:
    @pytest.mark.asyncio
    async def test_link_trainer_account(self, store, studio, accounts):
        admin, newcomer = accounts
        caller = CallerContext(role=UserRole.ADMIN, user_id=admin.id, name="관리자")

        user = await update_permissions(
            store, caller, newcomer.id,
            PermissionUpdate(role=UserRole.TRAINER, trainer_profile_id=studio.kim.id),
        )

        assert user.role == UserRole.TRAINER
        assert user.trainer_profile_id == studio.kim.id

    @pytest.mark.asyncio
    async def test_trainer_role_needs_profile(self, store, studio, accounts):
        admin, newcomer = accounts
        caller = CallerContext(role=UserRole.ADMIN, user_id=admin.id, name="관리자")
        with pytest.raises(ValidationFailed):
            await update_permissions(store, caller, newcomer.id, PermissionUpdate(role=UserRole.TRAINER))

    @pytest.mark.asyncio
    async def test_admin_keeps_own_role(self, store, studio, accounts):
        admin, _ = accounts
        caller = CallerContext(role=UserRole.ADMIN, user_id=admin.id, name="관리자")
        with pytest.raises(PreconditionFailed):
            await update_permissions(store, caller, admin.id, PermissionUpdate(role=UserRole.MANAGER))

    @pytest.mark.asyncio
    async def test_manager_cannot_assign_roles(self, store, studio, accounts):
        _, newcomer = accounts
        with pytest.raises(AccessDenied):
            await update_permissions(store, studio.manager, newcomer.id, PermissionUpdate(role=UserRole.MANAGER))

    @pytest.mark.asyncio
    async def test_unassigned_user_is_refused(self, store, studio):
        caller = CallerContext(role=UserRole.UNASSIGNED)
        with pytest.raises(AccessDenied):
            await list_members(store, caller)


class TestAuditLog:
    @pytest.mark.asyncio
    async def test_manager_sees_own_branch_entries(self, store, studio):
        await create_member(store, studio.admin, MemberCreate(name="수진", branch_id=studio.gangnam.id))
        await create_member(store, studio.admin, MemberCreate(name="하늘", branch_id=studio.hongdae.id))

        logs = await list_audit_logs(store, studio.manager)

        assert [log.entity_name for log in logs] == ["수진"]

    @pytest.mark.asyncio
    async def test_newest_first(self, store, studio):
        await create_member(store, studio.admin, MemberCreate(name="수진", branch_id=studio.gangnam.id))
        await create_member(store, studio.admin, MemberCreate(name="하늘", branch_id=studio.gangnam.id))

        logs = await list_audit_logs(store, studio.admin)

        assert [log.entity_name for log in logs] == ["하늘", "수진"]

    @pytest.mark.asyncio
    async def test_trainers_cannot_read_log(self, store, studio):
        with pytest.raises(AccessDenied):
            await list_audit_logs(store, studio.kim_caller)
