"""
MemberProgram model - a purchased block of PT sessions.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from ptstudio.models.base import BaseModel


class ProgramStatus(str, Enum):
    """Program validity."""
    ACTIVE = "유효"
    SUSPENDED = "정지"
    EXPIRED = "만료"


class RegistrationType(str, Enum):
    """Whether the purchase is a first registration or a renewal."""
    NEW = "신규"
    RENEWAL = "재등록"


class MemberProgram(BaseModel):
    """
    A block of prepaid sessions bought by one or more members.

    trainer_ids is ordered; the first entry is the primary trainer.
    session_trainers and session_fees are keyed by the session number
    as a string (JSON object keys).
    """

    __tablename__ = "programs"

    member_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    program_name: Mapped[str] = mapped_column(String(200), nullable=False)
    registration_type: Mapped[RegistrationType] = mapped_column(
        SQLAlchemyEnum(
            RegistrationType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=RegistrationType.NEW,
        nullable=False,
    )
    registration_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Pricing
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="round(total_amount / total_sessions)",
    )
    fixed_trainer_fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    session_fees: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="{session_number: fee} overrides",
    )

    # Progress
    completed_sessions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ProgramStatus] = mapped_column(
        SQLAlchemyEnum(
            ProgramStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ProgramStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Assignment
    trainer_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    session_trainers: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="{session_number: trainer_id}",
    )
    branch_id: Mapped[int] = mapped_column(
        ForeignKey("branches.id"),
        nullable=False,
        index=True,
    )
    default_session_duration: Mapped[int] = mapped_column(
        Integer,
        default=50,
        nullable=False,
    )
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def primary_trainer_id(self) -> Optional[int]:
        return self.trainer_ids[0] if self.trainer_ids else None

    @property
    def remaining_sessions(self) -> int:
        return max(0, self.total_sessions - self.completed_sessions)

    def trainer_for_session(self, session_number: int) -> Optional[int]:
        """Trainer planned for a session number, falling back to the primary."""
        planned = (self.session_trainers or {}).get(str(session_number))
        return planned if planned is not None else self.primary_trainer_id

    def fee_for_session(self, session_number: int) -> Optional[Decimal]:
        fee = (self.session_fees or {}).get(str(session_number))
        if fee is not None:
            return Decimal(str(fee))
        return self.fixed_trainer_fee

    def __repr__(self) -> str:
        return (
            f"<MemberProgram(id={self.id}, name='{self.program_name}', "
            f"{self.completed_sessions}/{self.total_sessions}, status={self.status})>"
        )
