"""Branch, member, preset, user and audit log schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ptstudio.models import AuditAction, AuditEntity, UserRole


# ── Branches ──────────────────────────────────────────────


class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class BranchResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Members ───────────────────────────────────────────────


class MemberCreate(BaseModel):
    """New member with optional consultation details."""

    name: str = Field(..., min_length=1, max_length=100)
    contact: str = Field("", max_length=50)
    branch_id: Optional[int] = None
    referrer_id: Optional[int] = None
    assigned_trainer_id: Optional[int] = None
    exercise_goals: List[str] = []
    motivation: Optional[str] = None
    medical_history: Optional[str] = None
    exercise_experience: Optional[str] = Field(None, max_length=20)
    preferred_time: List[str] = []
    occupation: Optional[str] = Field(None, max_length=100)
    memo: Optional[str] = None


class MemberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact: Optional[str] = Field(None, max_length=50)
    branch_id: Optional[int] = None
    referrer_id: Optional[int] = None
    assigned_trainer_id: Optional[int] = None
    exercise_goals: Optional[List[str]] = None
    motivation: Optional[str] = None
    medical_history: Optional[str] = None
    exercise_experience: Optional[str] = Field(None, max_length=20)
    preferred_time: Optional[List[str]] = None
    occupation: Optional[str] = Field(None, max_length=100)
    memo: Optional[str] = None


class MemberResponse(BaseModel):
    id: int
    name: str
    contact: str
    branch_id: int
    referrer_id: Optional[int] = None
    assigned_trainer_id: Optional[int] = None
    exercise_goals: List[str]
    motivation: Optional[str] = None
    medical_history: Optional[str] = None
    exercise_experience: Optional[str] = None
    preferred_time: List[str]
    occupation: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Presets ───────────────────────────────────────────────


class PresetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., ge=0)
    total_sessions: int = Field(..., gt=0)
    branch_id: Optional[int] = None
    default_session_duration: Optional[int] = Field(None, gt=0, le=600)
    fixed_trainer_fee: Optional[Decimal] = Field(None, ge=0)
    session_fees: Optional[Dict[int, int]] = None


class PresetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    total_sessions: Optional[int] = Field(None, gt=0)
    branch_id: Optional[int] = None
    default_session_duration: Optional[int] = Field(None, gt=0, le=600)
    fixed_trainer_fee: Optional[Decimal] = Field(None, ge=0)
    session_fees: Optional[Dict[int, int]] = None


class PresetResponse(BaseModel):
    id: int
    name: str
    total_amount: Decimal
    total_sessions: int
    branch_id: Optional[int] = None
    default_session_duration: Optional[int] = None
    fixed_trainer_fee: Optional[Decimal] = None
    session_fees: Optional[Dict[int, int]] = None

    model_config = {"from_attributes": True}


# ── Users ─────────────────────────────────────────────────


class PermissionUpdate(BaseModel):
    """Role and scope of a user account (admin only)."""

    role: Optional[UserRole] = None
    assigned_branch_ids: Optional[List[int]] = None
    trainer_profile_id: Optional[int] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: UserRole
    assigned_branch_ids: List[int]
    trainer_profile_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Audit log ─────────────────────────────────────────────


class AuditLogResponse(BaseModel):
    id: int
    created_at: datetime
    user_id: Optional[int]
    user_name: str
    action: AuditAction
    entity_type: AuditEntity
    entity_name: str
    details: str
    branch_id: Optional[int] = None

    model_config = {"from_attributes": True}
