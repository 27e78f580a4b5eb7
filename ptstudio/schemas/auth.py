"""Authentication schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ptstudio.models import UserRole


class LoginRequest(BaseModel):
    """Login request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response."""

    success: bool
    message: str
    role: str = Field(default="")


class SignupRequest(BaseModel):
    """Self sign-up; the account stays unassigned until an admin approves it."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)


class MeResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: UserRole
    assigned_branch_ids: List[int]
    trainer_profile_id: Optional[int] = None

    model_config = {"from_attributes": True}
