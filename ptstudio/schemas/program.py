"""
Program schemas.

At the API boundary a program still exposes `assigned_trainer_id`, which
is always the first entry of `trainer_ids`.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from ptstudio.models import ProgramStatus, RegistrationType


def with_primary(trainer_ids: Optional[List[int]], primary: Optional[int]) -> Optional[List[int]]:
    """Put `primary` first in trainer_ids, keeping the order of the rest."""
    if primary is None:
        return trainer_ids
    rest = [t for t in (trainer_ids or []) if t != primary]
    return [primary] + rest


class ProgramCreate(BaseModel):
    """
    New program. Fields left empty are taken from the preset when
    preset_id is given.
    """

    member_ids: List[int] = []
    branch_id: Optional[int] = None
    preset_id: Optional[int] = None
    program_name: Optional[str] = Field(None, max_length=200)
    registration_type: RegistrationType = RegistrationType.NEW
    registration_date: Optional[date] = None
    payment_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    total_sessions: Optional[int] = None
    status: ProgramStatus = ProgramStatus.ACTIVE
    trainer_ids: List[int] = []
    assigned_trainer_id: Optional[int] = None
    session_trainers: Optional[Dict[int, int]] = None
    default_session_duration: Optional[int] = Field(None, gt=0, le=600)
    fixed_trainer_fee: Optional[Decimal] = Field(None, ge=0)
    session_fees: Optional[Dict[int, int]] = None
    memo: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def merge_assigned_trainer(self) -> "ProgramCreate":
        self.trainer_ids = with_primary(self.trainer_ids, self.assigned_trainer_id)
        return self


class ProgramUpdate(BaseModel):
    """Partial program update. The completed count is never set directly."""

    member_ids: Optional[List[int]] = None
    program_name: Optional[str] = Field(None, max_length=200)
    registration_type: Optional[RegistrationType] = None
    registration_date: Optional[date] = None
    payment_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    total_sessions: Optional[int] = None
    status: Optional[ProgramStatus] = None
    trainer_ids: Optional[List[int]] = None
    assigned_trainer_id: Optional[int] = None
    session_trainers: Optional[Dict[int, int]] = None
    default_session_duration: Optional[int] = Field(None, gt=0, le=600)
    fixed_trainer_fee: Optional[Decimal] = Field(None, ge=0)
    session_fees: Optional[Dict[int, int]] = None
    memo: Optional[str] = Field(None, max_length=2000)


class ProgramRenewal(BaseModel):
    """Re-registration of an existing program; unset fields are copied."""

    registration_date: Optional[date] = None
    payment_date: Optional[date] = None
    program_name: Optional[str] = Field(None, max_length=200)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    total_sessions: Optional[int] = None
    memo: Optional[str] = Field(None, max_length=2000)


class ProgramResponse(BaseModel):
    id: int
    member_ids: List[int]
    program_name: str
    registration_type: RegistrationType
    registration_date: date
    payment_date: date
    total_amount: Decimal
    total_sessions: int
    unit_price: Decimal
    completed_sessions: int
    remaining_sessions: int
    status: ProgramStatus
    trainer_ids: List[int]
    assigned_trainer_id: Optional[int]
    session_trainers: Optional[Dict[int, int]] = None
    branch_id: int
    default_session_duration: int
    fixed_trainer_fee: Optional[Decimal] = None
    session_fees: Optional[Dict[int, int]] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_program(cls, program) -> "ProgramResponse":
        return cls(
            id=program.id,
            member_ids=program.member_ids,
            program_name=program.program_name,
            registration_type=program.registration_type,
            registration_date=program.registration_date,
            payment_date=program.payment_date,
            total_amount=program.total_amount,
            total_sessions=program.total_sessions,
            unit_price=program.unit_price,
            completed_sessions=program.completed_sessions,
            remaining_sessions=program.remaining_sessions,
            status=program.status,
            trainer_ids=program.trainer_ids,
            assigned_trainer_id=program.primary_trainer_id,
            session_trainers=program.session_trainers,
            branch_id=program.branch_id,
            default_session_duration=program.default_session_duration,
            fixed_trainer_fee=program.fixed_trainer_fee,
            session_fees=program.session_fees,
            memo=program.memo,
            created_at=program.created_at,
        )
