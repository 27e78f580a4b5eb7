"""User administration and audit log endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query

from ptstudio.auth.dependencies import get_caller, get_store, require_admin
from ptstudio.db import Store
from ptstudio.models import User
from ptstudio.schemas.directory import AuditLogResponse, PermissionUpdate, UserResponse
from ptstudio.services import directory
from ptstudio.services.scope import CallerContext

router = APIRouter(tags=["Users"])


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
    _admin: User = Depends(require_admin),
):
    return await directory.list_users(store, caller)


@router.put("/users/{user_id}/permissions", response_model=UserResponse)
async def update_permissions(
    user_id: int,
    changes: PermissionUpdate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
    _admin: User = Depends(require_admin),
):
    """Approve an account or change its role and branch scope."""
    return await directory.update_permissions(store, caller, user_id, changes)


@router.get("/audit-logs", response_model=List[AuditLogResponse])
async def list_audit_logs(
    limit: int = Query(200, ge=1, le=1000),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return await directory.list_audit_logs(store, caller, limit)
