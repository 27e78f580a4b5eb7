"""
ProgramPreset model - template used to prefill new programs.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ptstudio.models.base import BaseModel


class ProgramPreset(BaseModel):
    """Program template. branch_id=None means usable at any branch."""

    __tablename__ = "program_presets"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False)
    branch_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("branches.id"),
        nullable=True,
        index=True,
    )
    default_session_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fixed_trainer_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    session_fees: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ProgramPreset(id={self.id}, name='{self.name}', branch_id={self.branch_id})>"
