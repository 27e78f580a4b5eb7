"""
FastAPI dependencies for authentication and caller scope.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ptstudio.auth.jwt import get_token_from_cookie, verify_token
from ptstudio.db import Store, get_db
from ptstudio.models import User, UserRole
from ptstudio.services.scope import CallerContext


async def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return Store(db)


async def get_current_user_optional(
    request: Request,
    store: Store = Depends(get_store),
) -> Optional[User]:
    """
    Get current user from JWT cookie if present.

    Returns None if no valid token found (doesn't raise error).
    """
    token = get_token_from_cookie(request)
    if not token:
        return None

    user_id = verify_token(token)
    if user_id is None:
        return None

    user = await store.users.get(user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    request: Request,
    store: Store = Depends(get_store),
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated, 403 if the account is disabled.
    """
    token = get_token_from_cookie(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user_id = verify_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = await store.users.get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def caller_for(store: Store, user: User) -> CallerContext:
    """
    Build the caller scope for a user.

    A trainer's branches are those of their trainer profile plus any
    assigned to the account directly.
    """
    branch_ids = set(user.assigned_branch_ids or [])
    if user.role == UserRole.TRAINER and user.trainer_profile_id is not None:
        trainer = await store.trainers.get(user.trainer_profile_id)
        if trainer is not None:
            branch_ids.update(trainer.branch_ids)

    return CallerContext(
        role=user.role,
        user_id=user.id,
        name=user.name or user.email,
        assigned_branch_ids=frozenset(branch_ids),
        trainer_profile_id=user.trainer_profile_id,
    )


async def get_caller(
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> CallerContext:
    return await caller_for(store, current_user)


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Require the current user to be an admin.

    Raises 403 otherwise.
    """
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
