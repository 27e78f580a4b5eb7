"""
Explicit per-entity update payloads for the store.

Each patch lists exactly the mutable columns of one model; unknown
fields are rejected. Only fields that were set are written, so an
explicit None clears a column.
"""

import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ptstudio.models import (
    FixedRate,
    PercentageRate,
    ProgramStatus,
    RateType,
    RegistrationType,
    SessionStatus,
    UserRole,
)


class Patch(BaseModel):
    """Base class for store patches."""

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        """Fields that were explicitly set, as validated objects (not dumped)."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class BranchPatch(Patch):
    name: Optional[str] = None


class MemberPatch(Patch):
    name: Optional[str] = None
    contact: Optional[str] = None
    branch_id: Optional[int] = None
    referrer_id: Optional[int] = None
    assigned_trainer_id: Optional[int] = None
    exercise_goals: Optional[List[str]] = None
    motivation: Optional[str] = None
    medical_history: Optional[str] = None
    exercise_experience: Optional[str] = None
    preferred_time: Optional[List[str]] = None
    occupation: Optional[str] = None
    memo: Optional[str] = None


class TrainerPatch(Patch):
    name: Optional[str] = None
    is_active: Optional[bool] = None
    color: Optional[str] = None
    photo_url: Optional[str] = None
    # Applied through Trainer.set_branch_rates, not setattr
    branch_rates: Optional[Dict[int, Optional[Union[PercentageRate, FixedRate]]]] = None


class ProgramPatch(Patch):
    member_ids: Optional[List[int]] = None
    program_name: Optional[str] = None
    registration_type: Optional[RegistrationType] = None
    registration_date: Optional[dt.date] = None
    payment_date: Optional[dt.date] = None
    total_amount: Optional[Decimal] = None
    total_sessions: Optional[int] = None
    unit_price: Optional[Decimal] = None
    fixed_trainer_fee: Optional[Decimal] = None
    session_fees: Optional[Dict[str, int]] = None
    completed_sessions: Optional[int] = None
    status: Optional[ProgramStatus] = None
    trainer_ids: Optional[List[int]] = None
    session_trainers: Optional[Dict[str, int]] = None
    branch_id: Optional[int] = None
    default_session_duration: Optional[int] = None
    memo: Optional[str] = None


class SessionPatch(Patch):
    session_number: Optional[int] = None
    trainer_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    duration: Optional[int] = None
    status: Optional[SessionStatus] = None
    attended_member_ids: Optional[List[int]] = None
    trainer_fee: Optional[Decimal] = None
    rate_type: Optional[RateType] = None
    rate_value: Optional[Decimal] = None
    session_fee: Optional[Decimal] = None
    completed_at: Optional[dt.datetime] = None


class PresetPatch(Patch):
    name: Optional[str] = None
    total_amount: Optional[Decimal] = None
    total_sessions: Optional[int] = None
    branch_id: Optional[int] = None
    default_session_duration: Optional[int] = None
    fixed_trainer_fee: Optional[Decimal] = None
    session_fees: Optional[Dict[str, int]] = None


class UserPatch(Patch):
    password_hash: Optional[str] = None
    name: Optional[str] = None
    role: Optional[UserRole] = None
    assigned_branch_ids: Optional[List[int]] = None
    trainer_profile_id: Optional[int] = None
    is_active: Optional[bool] = None
    last_active_at: Optional[dt.datetime] = None
