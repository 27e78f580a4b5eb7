"""
TrainingSession model - one booked or completed PT session.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, Numeric, Time
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from ptstudio.models.base import BaseModel
from ptstudio.models.rate import Rate, RateType, make_rate


class SessionStatus(str, Enum):
    """Lifecycle state of a session."""
    BOOKED = "booked"
    COMPLETED = "completed"


class TrainingSession(BaseModel):
    """
    A single PT session.

    Multi-member bookings produce one row per attending member, all sharing
    the same session_number, date and trainer.

    trainer_fee and the rate columns reflect the trainer's branch rate at the
    last recompute (booking, trainer change or rate propagation).
    """

    __tablename__ = "sessions"

    program_id: Mapped[int] = mapped_column(
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)
    trainer_id: Mapped[int] = mapped_column(
        ForeignKey("trainers.id"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Minutes",
    )
    status: Mapped[SessionStatus] = mapped_column(
        SQLAlchemyEnum(
            SessionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=SessionStatus.BOOKED,
        nullable=False,
        index=True,
    )
    attended_member_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Compensation
    trainer_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    rate_type: Mapped[RateType] = mapped_column(
        SQLAlchemyEnum(
            RateType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    rate_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    session_fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Session fee recorded at completion",
    )
    completed_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def rate(self) -> Rate:
        return make_rate(self.rate_type, self.rate_value)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def __repr__(self) -> str:
        return (
            f"<TrainingSession(id={self.id}, program_id={self.program_id}, "
            f"#{self.session_number}, {self.date} {self.start_time}, status={self.status})>"
        )
