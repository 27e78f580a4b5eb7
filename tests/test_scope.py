"""
Tests for role-based visibility and mutation scope.
"""

from types import SimpleNamespace

import pytest

from ptstudio.models import UserRole
from ptstudio.services.errors import AccessDenied, NotFound
from ptstudio.services.scope import (
    CallerContext,
    can_manage_branch_data,
    can_manage_trainer,
    can_view_log,
    can_view_member,
    can_view_preset,
    can_view_program,
    can_view_session,
    can_view_trainer,
    can_work_session,
    ensure_visible,
    require_approved,
    visible_sessions,
)

ADMIN = CallerContext(role=UserRole.ADMIN)
MANAGER = CallerContext(role=UserRole.MANAGER, assigned_branch_ids=frozenset({1}))
TRAINER = CallerContext(
    role=UserRole.TRAINER,
    assigned_branch_ids=frozenset({1}),
    trainer_profile_id=10,
)
UNASSIGNED = CallerContext(role=UserRole.UNASSIGNED)


def _program(branch_id=1, trainer_ids=(10,)):
    return SimpleNamespace(id=100, branch_id=branch_id, trainer_ids=list(trainer_ids))


def _session(trainer_id=10, program_id=100):
    return SimpleNamespace(trainer_id=trainer_id, program_id=program_id)


class TestCallerContext:
    def test_trainer_needs_profile(self):
        caller = CallerContext(role=UserRole.TRAINER)
        assert not caller.is_trainer

    def test_unassigned_is_rejected(self):
        with pytest.raises(AccessDenied):
            require_approved(UNASSIGNED)

    def test_admin_covers_every_branch(self):
        assert ADMIN.covers_branch(99)
        assert ADMIN.covers_any_branch([])


class TestVisibility:
    def test_member_by_branch_for_manager(self):
        assert can_view_member(MANAGER, SimpleNamespace(branch_id=1, assigned_trainer_id=None))
        assert not can_view_member(MANAGER, SimpleNamespace(branch_id=2, assigned_trainer_id=None))

    def test_member_by_assignment_for_trainer(self):
        own = SimpleNamespace(branch_id=1, assigned_trainer_id=10)
        other = SimpleNamespace(branch_id=1, assigned_trainer_id=11)
        assert can_view_member(TRAINER, own)
        assert not can_view_member(TRAINER, other)

    def test_trainer_sees_colleagues_sharing_a_branch(self):
        assert can_view_trainer(TRAINER, SimpleNamespace(id=11, branch_ids=[1, 2]))
        assert not can_view_trainer(TRAINER, SimpleNamespace(id=12, branch_ids=[2]))
        assert can_view_trainer(TRAINER, SimpleNamespace(id=10, branch_ids=[]))

    def test_program_for_trainer_requires_listing(self):
        assert can_view_program(TRAINER, _program(trainer_ids=(11, 10)))
        assert not can_view_program(TRAINER, _program(trainer_ids=(11,)))

    def test_program_for_manager_by_branch(self):
        assert can_view_program(MANAGER, _program(branch_id=1, trainer_ids=()))
        assert not can_view_program(MANAGER, _program(branch_id=2))

    def test_session_taught_by_trainer_is_visible(self):
        unlisted = _program(trainer_ids=(11,))
        assert can_view_session(TRAINER, _session(trainer_id=10), unlisted)

    def test_trainer_sees_nothing_outside_their_branches(self):
        foreign_program = _program(branch_id=2, trainer_ids=(10,))
        assert not can_view_program(TRAINER, foreign_program)
        assert not can_view_session(TRAINER, _session(trainer_id=10), foreign_program)
        assert not can_view_session(TRAINER, _session(trainer_id=10), None)

    def test_session_of_listed_program_is_visible(self):
        assert can_view_session(TRAINER, _session(trainer_id=11), _program(trainer_ids=(10, 11)))

    def test_session_of_other_trainer_is_hidden(self):
        assert not can_view_session(TRAINER, _session(trainer_id=11), _program(trainer_ids=(11,)))

    def test_manager_session_without_program_is_hidden(self):
        assert not can_view_session(MANAGER, _session(), None)

    def test_global_presets_visible_to_managers(self):
        assert can_view_preset(MANAGER, SimpleNamespace(branch_id=None))
        assert not can_view_preset(MANAGER, SimpleNamespace(branch_id=2))
        assert not can_view_preset(TRAINER, SimpleNamespace(branch_id=None))

    def test_logs_scoped_by_branch(self):
        assert can_view_log(MANAGER, SimpleNamespace(branch_id=1))
        assert not can_view_log(MANAGER, SimpleNamespace(branch_id=None))
        assert not can_view_log(TRAINER, SimpleNamespace(branch_id=1))

    def test_unassigned_sees_nothing(self):
        assert not can_view_program(UNASSIGNED, _program())
        assert not can_view_member(UNASSIGNED, SimpleNamespace(branch_id=1, assigned_trainer_id=None))

    def test_visible_sessions_filters_by_program_map(self):
        sessions = [_session(trainer_id=11, program_id=100), _session(trainer_id=11, program_id=200)]
        programs = {100: _program(trainer_ids=(10,)), 200: _program(trainer_ids=(11,))}
        assert visible_sessions(TRAINER, sessions, programs) == [sessions[0]]


class TestMutationScope:
    def test_branch_data(self):
        assert can_manage_branch_data(ADMIN, 5)
        assert can_manage_branch_data(MANAGER, 1)
        assert not can_manage_branch_data(MANAGER, 2)
        assert not can_manage_branch_data(TRAINER, 1)

    def test_trainer_management_needs_every_branch(self):
        assert can_manage_trainer(MANAGER, [1])
        assert not can_manage_trainer(MANAGER, [1, 2])
        assert not can_manage_trainer(MANAGER, [])
        assert can_manage_trainer(ADMIN, [1, 2])

    def test_trainer_can_work_own_program_sessions(self):
        assert can_work_session(TRAINER, None, _program(trainer_ids=(10,)))
        assert not can_work_session(TRAINER, None, _program(trainer_ids=(11,)))
        assert not can_work_session(TRAINER, None, _program(branch_id=2, trainer_ids=(10,)))


class TestEnsureVisible:
    def test_missing_is_not_found(self):
        with pytest.raises(NotFound):
            ensure_visible(None, lambda e: True, "Program")

    def test_out_of_scope_is_not_found(self):
        with pytest.raises(NotFound) as exc:
            ensure_visible(_program(branch_id=2), lambda p: can_view_program(MANAGER, p), "Program")
        assert exc.value.message == "Program not found."

    def test_visible_entity_is_returned(self):
        program = _program()
        assert ensure_visible(program, lambda p: can_view_program(MANAGER, p), "Program") is program
