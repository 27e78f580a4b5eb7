"""
Member model.
"""

from typing import Optional

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ptstudio.models.base import BaseModel


class Member(BaseModel):
    """
    Studio member (PT customer).

    assigned_trainer_id is advisory: it pre-selects the trainer for new
    programs and scopes which members a trainer can see.
    """

    __tablename__ = "members"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    contact: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    branch_id: Mapped[int] = mapped_column(
        ForeignKey("branches.id"),
        nullable=False,
        index=True,
    )
    referrer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_trainer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("trainers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Consultation details
    exercise_goals: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="e.g. [\"체중 감량\", \"근력 증가\"]",
    )
    motivation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    medical_history: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    exercise_experience: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="입문 / 초급 / 중급 / 고급",
    )
    preferred_time: Mapped[list] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="오전 / 오후 / 저녁 / 주말",
    )
    occupation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, name='{self.name}', branch_id={self.branch_id})>"
