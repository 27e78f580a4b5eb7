"""Pydantic schemas for request/response validation."""

from ptstudio.schemas.auth import LoginRequest, LoginResponse, MeResponse, SignupRequest
from ptstudio.schemas.directory import (
    AuditLogResponse,
    BranchCreate,
    BranchResponse,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    PermissionUpdate,
    PresetCreate,
    PresetResponse,
    PresetUpdate,
    UserResponse,
)
from ptstudio.schemas.program import (
    ProgramCreate,
    ProgramRenewal,
    ProgramResponse,
    ProgramUpdate,
)
from ptstudio.schemas.session import (
    BookingResponse,
    SessionBook,
    SessionComplete,
    SessionEdit,
    SessionFeeUpdate,
    SessionResponse,
)
from ptstudio.schemas.settlement import (
    SettlementResponse,
    SettlementSummaryResponse,
    TrainerSettlementResponse,
    TrainerStatResponse,
)
from ptstudio.schemas.trainer import (
    BranchRateInput,
    TrainerCreate,
    TrainerResponse,
    TrainerUpdate,
    TrainerUpdateResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "SignupRequest",
    "MeResponse",
    # Directory
    "BranchCreate",
    "BranchResponse",
    "MemberCreate",
    "MemberUpdate",
    "MemberResponse",
    "PresetCreate",
    "PresetUpdate",
    "PresetResponse",
    "PermissionUpdate",
    "UserResponse",
    "AuditLogResponse",
    # Program
    "ProgramCreate",
    "ProgramUpdate",
    "ProgramRenewal",
    "ProgramResponse",
    # Session
    "SessionBook",
    "SessionEdit",
    "SessionComplete",
    "SessionFeeUpdate",
    "SessionResponse",
    "BookingResponse",
    # Settlement
    "TrainerStatResponse",
    "SettlementSummaryResponse",
    "SettlementResponse",
    "TrainerSettlementResponse",
    # Trainer
    "BranchRateInput",
    "TrainerCreate",
    "TrainerUpdate",
    "TrainerResponse",
    "TrainerUpdateResponse",
]
