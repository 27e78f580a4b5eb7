"""
Authentication API endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ptstudio.auth.dependencies import get_current_user, get_current_user_optional, get_store
from ptstudio.auth.jwt import clear_auth_cookie, create_access_token, set_auth_cookie
from ptstudio.db import Store
from ptstudio.models import User, UserRole
from ptstudio.schemas.auth import LoginRequest, LoginResponse, MeResponse, SignupRequest
from ptstudio.schemas.patches import UserPatch
from ptstudio.utils.password import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    response: Response,
    credentials: LoginRequest,
    store: Store = Depends(get_store),
):
    """Authenticate user and set JWT cookie."""
    users = await store.users.list(User.email == credentials.email.strip().lower())
    user = users[0] if users else None

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    token = create_access_token(user.id, user.role.value)
    set_auth_cookie(response, token)

    patch = UserPatch(last_active_at=datetime.now(timezone.utc))
    if needs_rehash(user.password_hash):
        patch = UserPatch(
            last_active_at=patch.last_active_at,
            password_hash=hash_password(credentials.password),
        )
    role = user.role.value
    if await store.users.update(user.id, patch) is None:
        logger.warning(f"Could not record login time for user {user.id}")

    if role == UserRole.UNASSIGNED.value:
        message = "Logged in. Your account is waiting for administrator approval."
    else:
        message = "Login successful"
    return LoginResponse(success=True, message=message, role=role)


@router.post("/logout")
async def logout(
    response: Response,
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Clear JWT cookie and log out."""
    if current_user:
        logger.info(f"User {current_user.id} logged out")
    clear_auth_cookie(response)
    return {"success": True, "message": "Logged out"}


@router.post("/signup", response_model=MeResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    store: Store = Depends(get_store),
):
    """Create an unassigned account; an admin grants a role later."""
    email = request.email.strip().lower()
    if await store.users.list(User.email == email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    user = await store.users.create(
        email=email,
        password_hash=hash_password(request.password),
        name=request.name,
        role=UserRole.UNASSIGNED,
        assigned_branch_ids=[],
        is_active=True,
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to create the account",
        )
    logger.info(f"New account {user.id} signed up, waiting for approval")
    return MeResponse.model_validate(user)


@router.get("/me", response_model=MeResponse)
async def me(current_user: User = Depends(get_current_user)):
    return MeResponse.model_validate(current_user)
