"""
Branches, members, presets, user permissions and the audit log.
"""

import logging
from typing import List, Optional

from ptstudio.db.repository import Store
from ptstudio.models import (
    AuditAction,
    AuditEntity,
    AuditLog,
    Branch,
    Member,
    MemberProgram,
    ProgramPreset,
    User,
    UserRole,
)
from ptstudio.schemas.directory import (
    BranchCreate,
    MemberCreate,
    MemberUpdate,
    PermissionUpdate,
    PresetCreate,
    PresetUpdate,
)
from ptstudio.schemas.patches import BranchPatch, MemberPatch, PresetPatch, UserPatch
from ptstudio.services.errors import (
    AccessDenied,
    PersistenceFailure,
    PreconditionFailed,
    ValidationFailed,
)
from ptstudio.services.programs import keyed_by_session
from ptstudio.services.scope import (
    CallerContext,
    can_manage_branch_data,
    can_view_branch,
    can_view_log,
    can_view_member,
    can_view_preset,
    ensure_visible,
    require_admin,
    require_approved,
    visible,
)
from ptstudio.utils.audit import log_action

logger = logging.getLogger(__name__)


# ── Branches ──────────────────────────────────────────────


async def list_branches(store: Store, caller: CallerContext) -> List[Branch]:
    require_approved(caller)
    return visible(await store.branches.list(), lambda b: can_view_branch(caller, b))


async def create_branch(store: Store, caller: CallerContext, request: BranchCreate) -> Branch:
    require_admin(caller, "add branches")
    name = request.name.strip()
    if await store.branches.list(Branch.name == name):
        raise ValidationFailed(f"A branch named '{name}' already exists.")

    branch = await store.branches.create(name=name)
    if branch is None:
        raise PersistenceFailure("Failed to add the branch.")

    await log_action(
        store, caller, AuditAction.CREATE, AuditEntity.BRANCH, branch.name,
        f"지점 '{branch.name}'을(를) 추가했습니다.", branch.id,
    )
    return branch


async def rename_branch(
    store: Store,
    caller: CallerContext,
    branch_id: int,
    request: BranchCreate,
) -> Branch:
    require_admin(caller, "rename branches")
    branch = ensure_visible(await store.branches.get(branch_id), lambda b: True, "Branch")
    old_name = branch.name
    updated = await store.branches.update(branch.id, BranchPatch(name=request.name.strip()))
    if updated is None:
        raise PersistenceFailure("Failed to rename the branch.")

    await log_action(
        store, caller, AuditAction.UPDATE, AuditEntity.BRANCH, updated.name,
        f"지점 이름을 '{old_name}'에서 '{updated.name}'(으)로 변경했습니다.", updated.id,
    )
    return updated


async def branch_references(store: Store, branch_id: int) -> List[str]:
    """Kinds of records that still point at a branch."""
    refs = []
    if await store.members.list(Member.branch_id == branch_id):
        refs.append("members")
    if await store.programs.list(MemberProgram.branch_id == branch_id):
        refs.append("programs")
    if await store.presets.list(ProgramPreset.branch_id == branch_id):
        refs.append("presets")
    if any(branch_id in t.branch_ids for t in await store.trainers.list()):
        refs.append("trainers")
    return refs


async def delete_branch(store: Store, caller: CallerContext, branch_id: int) -> None:
    require_admin(caller, "delete branches")
    branch = ensure_visible(await store.branches.get(branch_id), lambda b: True, "Branch")

    refs = await branch_references(store, branch.id)
    if refs:
        raise PreconditionFailed(
            f"Branch '{branch.name}' is still used by {', '.join(refs)}."
        )

    name = branch.name
    if not await store.branches.delete(branch.id):
        raise PersistenceFailure("Failed to delete the branch.")

    logger.info(f"Branch {branch_id} '{name}' deleted")
    await log_action(
        store, caller, AuditAction.DELETE, AuditEntity.BRANCH, name,
        f"지점 '{name}'을(를) 삭제했습니다.",
    )


# ── Members ───────────────────────────────────────────────


async def list_members(
    store: Store,
    caller: CallerContext,
    branch_id: Optional[int] = None,
) -> List[Member]:
    require_approved(caller)
    criteria = [Member.branch_id == branch_id] if branch_id else []
    return visible(
        await store.members.list(*criteria),
        lambda m: can_view_member(caller, m),
    )


async def load_member(store: Store, caller: CallerContext, member_id: int) -> Member:
    require_approved(caller)
    return ensure_visible(
        await store.members.get(member_id),
        lambda m: can_view_member(caller, m),
        "Member",
    )


async def _check_member_links(store: Store, fields: dict, branch_id: int) -> None:
    trainer_id = fields.get("assigned_trainer_id")
    if trainer_id is not None:
        trainer = await store.trainers.get(trainer_id)
        if trainer is None or branch_id not in trainer.branch_ids:
            raise ValidationFailed("The assigned trainer does not work at this branch.")
    referrer_id = fields.get("referrer_id")
    if referrer_id is not None and await store.members.get(referrer_id) is None:
        raise ValidationFailed("The referring member does not exist.")


async def create_member(store: Store, caller: CallerContext, request: MemberCreate) -> Member:
    require_approved(caller)
    if request.branch_id is None:
        raise ValidationFailed("Select a branch.")
    if not can_manage_branch_data(caller, request.branch_id):
        raise AccessDenied("You cannot add members at this branch.")

    fields = request.model_dump()
    await _check_member_links(store, fields, request.branch_id)
    member = await store.members.create(**fields)
    if member is None:
        raise PersistenceFailure("Failed to add the member.")

    await log_action(
        store, caller, AuditAction.CREATE, AuditEntity.MEMBER, member.name,
        f"회원 '{member.name}'을(를) 등록했습니다.", member.branch_id,
    )
    return member


async def update_member(
    store: Store,
    caller: CallerContext,
    member_id: int,
    changes: MemberUpdate,
) -> Member:
    member = await load_member(store, caller, member_id)
    fields = changes.model_dump(exclude_unset=True)
    branch_id = fields.get("branch_id") or member.branch_id
    if not (
        can_manage_branch_data(caller, member.branch_id)
        and can_manage_branch_data(caller, branch_id)
    ):
        raise AccessDenied("You cannot change this member.")
    if fields.get("branch_id", member.branch_id) is None:
        raise ValidationFailed("A member must belong to a branch.")
    await _check_member_links(store, fields, branch_id)
    if fields.get("referrer_id") == member.id:
        raise ValidationFailed("A member cannot refer themselves.")

    updated = await store.members.update(member.id, MemberPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the member.")

    await log_action(
        store, caller, AuditAction.UPDATE, AuditEntity.MEMBER, updated.name,
        f"회원 '{updated.name}' 정보를 수정했습니다.", updated.branch_id,
    )
    return updated


async def delete_member(store: Store, caller: CallerContext, member_id: int) -> None:
    """Delete a member who is not part of any program."""
    member = await load_member(store, caller, member_id)
    if not can_manage_branch_data(caller, member.branch_id):
        raise AccessDenied("You cannot delete this member.")
    programs = await store.programs.list(MemberProgram.branch_id == member.branch_id)
    if any(member.id in p.member_ids for p in programs):
        raise PreconditionFailed("Delete the member's programs first.")

    name, branch_id = member.name, member.branch_id
    if not await store.members.delete(member.id):
        raise PersistenceFailure("Failed to delete the member.")

    await log_action(
        store, caller, AuditAction.DELETE, AuditEntity.MEMBER, name,
        f"회원 '{name}'을(를) 삭제했습니다.", branch_id,
    )


# ── Presets ───────────────────────────────────────────────


def _can_edit_preset(caller: CallerContext, branch_id: Optional[int]) -> bool:
    """Global presets are admin-only; branch presets belong to the branch staff."""
    if branch_id is None:
        return caller.is_admin
    return can_manage_branch_data(caller, branch_id)


async def list_presets(
    store: Store,
    caller: CallerContext,
    branch_id: Optional[int] = None,
) -> List[ProgramPreset]:
    """Presets usable at a branch (its own and global ones), or all visible."""
    require_approved(caller)
    presets = visible(await store.presets.list(), lambda p: can_view_preset(caller, p))
    if branch_id is not None:
        presets = [p for p in presets if p.branch_id in (None, branch_id)]
    return presets


async def create_preset(
    store: Store,
    caller: CallerContext,
    request: PresetCreate,
) -> ProgramPreset:
    require_approved(caller)
    if not _can_edit_preset(caller, request.branch_id):
        raise AccessDenied("You cannot add presets here.")

    fields = request.model_dump()
    fields["session_fees"] = keyed_by_session(fields["session_fees"])
    preset = await store.presets.create(**fields)
    if preset is None:
        raise PersistenceFailure("Failed to add the preset.")

    await log_action(
        store, caller, AuditAction.CREATE, AuditEntity.PRESET, preset.name,
        f"프로그램 프리셋 '{preset.name}'을(를) 생성했습니다.", preset.branch_id,
    )
    return preset


async def update_preset(
    store: Store,
    caller: CallerContext,
    preset_id: int,
    changes: PresetUpdate,
) -> ProgramPreset:
    require_approved(caller)
    preset = ensure_visible(
        await store.presets.get(preset_id),
        lambda p: can_view_preset(caller, p),
        "Preset",
    )
    fields = changes.model_dump(exclude_unset=True)
    target = fields.get("branch_id", preset.branch_id)
    if not (_can_edit_preset(caller, preset.branch_id) and _can_edit_preset(caller, target)):
        raise AccessDenied("You cannot change this preset.")
    if "session_fees" in fields:
        fields["session_fees"] = keyed_by_session(fields["session_fees"])

    updated = await store.presets.update(preset.id, PresetPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the preset.")

    await log_action(
        store, caller, AuditAction.UPDATE, AuditEntity.PRESET, updated.name,
        f"프로그램 프리셋 '{updated.name}'을(를) 수정했습니다.", updated.branch_id,
    )
    return updated


async def delete_preset(store: Store, caller: CallerContext, preset_id: int) -> None:
    require_approved(caller)
    preset = ensure_visible(
        await store.presets.get(preset_id),
        lambda p: can_view_preset(caller, p),
        "Preset",
    )
    if not _can_edit_preset(caller, preset.branch_id):
        raise AccessDenied("You cannot delete this preset.")

    name, branch_id = preset.name, preset.branch_id
    if not await store.presets.delete(preset.id):
        raise PersistenceFailure("Failed to delete the preset.")

    await log_action(
        store, caller, AuditAction.DELETE, AuditEntity.PRESET, name,
        f"프로그램 프리셋 '{name}'을(를) 삭제했습니다.", branch_id,
    )


# ── Users ─────────────────────────────────────────────────


async def list_users(store: Store, caller: CallerContext) -> List[User]:
    require_admin(caller, "manage users")
    return await store.users.list()


async def update_permissions(
    store: Store,
    caller: CallerContext,
    user_id: int,
    changes: PermissionUpdate,
) -> User:
    """Assign a role, branches and trainer profile to an account (admin only)."""
    require_admin(caller, "manage users")
    user = ensure_visible(await store.users.get(user_id), lambda u: True, "User")

    fields = changes.model_dump(exclude_unset=True)
    if user.id == caller.user_id and fields.get("role", UserRole.ADMIN) != UserRole.ADMIN:
        raise PreconditionFailed("You cannot remove your own administrator role.")

    role = fields.get("role", user.role)
    profile_id = fields.get("trainer_profile_id", user.trainer_profile_id)
    if role == UserRole.TRAINER:
        if profile_id is None or await store.trainers.get(profile_id) is None:
            raise ValidationFailed("Link trainer accounts to an existing trainer profile.")
    for branch_id in fields.get("assigned_branch_ids") or []:
        if await store.branches.get(branch_id) is None:
            raise ValidationFailed("Select existing branches only.")

    updated = await store.users.update(user.id, UserPatch(**fields))
    if updated is None:
        raise PersistenceFailure("Failed to update the user's permissions.")

    logger.info(f"User {updated.id} permissions set to {updated.role.value} {updated.assigned_branch_ids}")
    await log_action(
        store, caller, AuditAction.UPDATE, AuditEntity.USER, updated.name or updated.email,
        f"'{updated.email}' 계정 권한을 {updated.role.value}(으)로 변경했습니다.",
    )
    return updated


# ── Audit log ─────────────────────────────────────────────


async def list_audit_logs(
    store: Store,
    caller: CallerContext,
    limit: int = 200,
) -> List[AuditLog]:
    """Most recent audit entries the caller may see, newest first."""
    require_approved(caller)
    if not (caller.is_admin or caller.is_manager):
        raise AccessDenied("Only administrators and managers can view the log.")
    logs = visible(await store.audit_logs.list(), lambda log: can_view_log(caller, log))
    logs.sort(key=lambda log: log.id, reverse=True)
    return logs[:limit]
