"""Training session schemas."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ptstudio.models import RateType, SessionStatus


class RateSchema(BaseModel):
    """A compensation rate: fraction of unit price, or fixed amount."""

    type: RateType
    value: Decimal = Field(..., ge=0)


class SessionBook(BaseModel):
    """Book a session for one or more program members."""

    program_id: int
    attended_member_ids: List[int] = Field(..., min_length=1)
    date: dt.date
    start_time: dt.time
    trainer_id: Optional[int] = None
    duration: Optional[int] = Field(None, gt=0, le=600)
    session_number: Optional[int] = Field(None, ge=1)


class SessionEdit(BaseModel):
    """Reschedule a booked session."""

    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    trainer_id: Optional[int] = None
    duration: Optional[int] = Field(None, gt=0, le=600)
    attended_member_ids: Optional[List[int]] = Field(None, min_length=1)


class SessionComplete(BaseModel):
    """Complete a session with the members who actually attended."""

    attended_member_ids: List[int]
    session_fee: Optional[Decimal] = Field(None, ge=0)


class SessionFeeUpdate(BaseModel):
    """Override the recorded session fee."""

    session_fee: Decimal = Field(..., ge=0)


class SessionResponse(BaseModel):
    """Session as returned by the API."""

    id: int
    program_id: int
    session_number: int
    trainer_id: int
    date: dt.date
    start_time: dt.time
    duration: int
    status: SessionStatus
    attended_member_ids: List[int]
    trainer_fee: Decimal
    rate: RateSchema
    session_fee: Optional[Decimal] = None
    completed_at: Optional[dt.datetime] = None

    @classmethod
    def from_session(cls, session) -> "SessionResponse":
        return cls(
            id=session.id,
            program_id=session.program_id,
            session_number=session.session_number,
            trainer_id=session.trainer_id,
            date=session.date,
            start_time=session.start_time,
            duration=session.duration,
            status=session.status,
            attended_member_ids=session.attended_member_ids,
            trainer_fee=session.trainer_fee,
            rate=RateSchema(type=session.rate.type, value=session.rate.value),
            session_fee=session.session_fee,
            completed_at=session.completed_at,
        )


class BookingResponse(BaseModel):
    """Result of a booking; failed_member_ids lists records that were not saved."""

    sessions: List[SessionResponse]
    failed_member_ids: List[int] = []
