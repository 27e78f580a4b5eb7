"""
Tests for password hashing, JWT tokens and caller scope.
"""

from datetime import timedelta

import pytest
from jose import jwt

from ptstudio.auth.dependencies import caller_for
from ptstudio.auth.jwt import ALGORITHM, create_access_token, verify_token
from ptstudio.config import settings
from ptstudio.models import UserRole
from ptstudio.utils.password import hash_password, verify_password


def test_password_hashing():
    password = "test_password_123"
    hashed = hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password("wrong_password", hashed)


def test_malformed_hash_is_a_mismatch():
    assert not verify_password("anything", "not-a-bcrypt-hash")


class TestTokens:
    def test_round_trip(self):
        token = create_access_token(42, UserRole.MANAGER.value)
        assert verify_token(token) == 42

    def test_expired(self):
        token = create_access_token(42, "admin", expires_delta=timedelta(seconds=-1))
        assert verify_token(token) is None

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "42", "type": "access"}, "other-secret", algorithm=ALGORITHM)
        assert verify_token(token) is None

    def test_wrong_type(self):
        token = jwt.encode({"sub": "42", "type": "refresh"}, settings.secret_key, algorithm=ALGORITHM)
        assert verify_token(token) is None

    def test_garbage(self):
        assert verify_token("not.a.token") is None


class TestCallerFor:
    @pytest.mark.asyncio
    async def test_trainer_scope_includes_profile_branches(self, store, studio):
        user = await store.users.create(
            email="lee@ptstudio.local",
            password_hash="x",
            name="이코치",
            role=UserRole.TRAINER,
            trainer_profile_id=studio.lee.id,
        )

        caller = await caller_for(store, user)

        assert caller.is_trainer
        assert caller.trainer_profile_id == studio.lee.id
        assert caller.assigned_branch_ids == frozenset({studio.gangnam.id, studio.hongdae.id})

    @pytest.mark.asyncio
    async def test_manager_scope_is_assigned_branches(self, store, studio):
        user = await store.users.create(
            email="manager@ptstudio.local",
            password_hash="x",
            role=UserRole.MANAGER,
            assigned_branch_ids=[studio.hongdae.id],
        )

        caller = await caller_for(store, user)

        assert caller.is_manager
        assert caller.assigned_branch_ids == frozenset({studio.hongdae.id})
        assert caller.name == "manager@ptstudio.local"
