"""
Role-based visibility and mutation scope.

Every service call receives the caller explicitly as a CallerContext.
The same predicates decide what a caller may list, open by id, or change:

- admin: everything
- manager: entities of the branches in assigned_branch_ids
- trainer: own profile and trainers sharing a branch, own members, and
  within their branches the programs listing them and the sessions they
  teach or that belong to those programs
- unassigned: nothing

An entity the caller cannot see is reported as NotFound, never AccessDenied.
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Mapping, Optional, TypeVar

from ptstudio.models import UserRole
from ptstudio.services.errors import AccessDenied, NotFound

T = TypeVar("T")


@dataclass(frozen=True)
class CallerContext:
    """Who is calling, and what they are scoped to."""

    role: UserRole
    user_id: Optional[int] = None
    name: str = ""
    assigned_branch_ids: FrozenSet[int] = field(default_factory=frozenset)
    trainer_profile_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_trainer(self) -> bool:
        return self.role == UserRole.TRAINER and self.trainer_profile_id is not None

    def covers_branch(self, branch_id: Optional[int]) -> bool:
        if self.is_admin:
            return True
        return branch_id is not None and branch_id in self.assigned_branch_ids

    def covers_any_branch(self, branch_ids: Iterable[int]) -> bool:
        if self.is_admin:
            return True
        return any(b in self.assigned_branch_ids for b in branch_ids)


def require_approved(caller: CallerContext) -> None:
    if caller.role == UserRole.UNASSIGNED:
        raise AccessDenied("Your account is waiting for administrator approval.")


def require_admin(caller: CallerContext, action: str = "do this") -> None:
    if not caller.is_admin:
        raise AccessDenied(f"Only an administrator can {action}.")


def require_staff(caller: CallerContext, action: str = "do this") -> None:
    """Admins and managers."""
    if not (caller.is_admin or caller.is_manager):
        raise AccessDenied(f"Only administrators and managers can {action}.")


# ── Visibility predicates ─────────────────────────────────


def can_view_branch(caller: CallerContext, branch) -> bool:
    if caller.is_admin:
        return True
    if caller.is_manager or caller.is_trainer:
        return caller.covers_branch(branch.id)
    return False


def can_view_member(caller: CallerContext, member) -> bool:
    if caller.is_admin:
        return True
    if caller.is_manager:
        return caller.covers_branch(member.branch_id)
    if caller.is_trainer:
        return member.assigned_trainer_id == caller.trainer_profile_id
    return False


def can_view_trainer(caller: CallerContext, trainer) -> bool:
    if caller.is_admin:
        return True
    if caller.is_trainer and trainer.id == caller.trainer_profile_id:
        return True
    if caller.is_manager or caller.is_trainer:
        return caller.covers_any_branch(trainer.branch_ids)
    return False


def can_view_program(caller: CallerContext, program) -> bool:
    if caller.is_admin:
        return True
    if caller.is_manager:
        return caller.covers_branch(program.branch_id)
    if caller.is_trainer:
        return (
            caller.covers_branch(program.branch_id)
            and caller.trainer_profile_id in (program.trainer_ids or [])
        )
    return False


def can_view_session(caller: CallerContext, session, program) -> bool:
    """`program` is the session's owning program (None if unknown)."""
    if caller.is_admin:
        return True
    if caller.is_manager:
        return program is not None and caller.covers_branch(program.branch_id)
    if caller.is_trainer:
        if program is None or not caller.covers_branch(program.branch_id):
            return False
        if session.trainer_id == caller.trainer_profile_id:
            return True
        return can_view_program(caller, program)
    return False


def can_view_preset(caller: CallerContext, preset) -> bool:
    if caller.is_admin:
        return True
    if caller.is_manager:
        return preset.branch_id is None or caller.covers_branch(preset.branch_id)
    return False


def can_view_log(caller: CallerContext, log) -> bool:
    if caller.is_admin:
        return True
    if caller.is_manager:
        return caller.covers_branch(log.branch_id)
    return False


# ── Mutation predicates ───────────────────────────────────


def can_manage_branch_data(caller: CallerContext, branch_id: Optional[int]) -> bool:
    """Members, programs and sessions of a branch: admin, or its manager."""
    if caller.is_admin:
        return True
    return caller.is_manager and caller.covers_branch(branch_id)


def can_manage_trainer(caller: CallerContext, branch_ids: Iterable[int]) -> bool:
    """Managers may only touch trainers and branch assignments inside their scope."""
    if caller.is_admin:
        return True
    branch_ids = list(branch_ids)
    return (
        caller.is_manager
        and bool(branch_ids)
        and all(caller.covers_branch(b) for b in branch_ids)
    )


def can_work_session(caller: CallerContext, session, program) -> bool:
    """Book, edit or complete: staff of the branch, or a trainer who can see it."""
    if can_manage_branch_data(caller, program.branch_id):
        return True
    if caller.is_trainer:
        if session is None:
            return can_view_program(caller, program)
        return can_view_session(caller, session, program)
    return False


# ── Collection helpers ────────────────────────────────────


def visible(items: Iterable[T], predicate: Callable[[T], bool]) -> List[T]:
    return [item for item in items if predicate(item)]


def visible_sessions(
    caller: CallerContext,
    sessions: Iterable[T],
    programs: Mapping[int, object],
) -> List[T]:
    """Filter sessions, given a program_id -> program map."""
    return [
        s for s in sessions
        if can_view_session(caller, s, programs.get(s.program_id))
    ]


def ensure_visible(entity: Optional[T], check: Callable[[T], bool], kind: str) -> T:
    """Return entity, or raise NotFound if it is missing or out of scope."""
    if entity is None or not check(entity):
        raise NotFound(f"{kind} not found.")
    return entity
