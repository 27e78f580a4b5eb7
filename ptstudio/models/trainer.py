"""
Trainer model and per-branch compensation.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ptstudio.models.base import Base, BaseModel
from ptstudio.models.rate import Rate, RateType, rate_from_columns


class TrainerBranch(Base):
    """
    A trainer's assignment to a branch, with the rate paid there.

    rate_type/rate_value are nullable: legacy assignments may exist
    without a configured rate.
    """

    __tablename__ = "trainer_branches"
    __table_args__ = (
        UniqueConstraint("trainer_id", "branch_id", name="uq_trainer_branch"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    trainer_id: Mapped[int] = mapped_column(
        ForeignKey("trainers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    branch_id: Mapped[int] = mapped_column(
        ForeignKey("branches.id"),
        nullable=False,
        index=True,
    )
    rate_type: Mapped[Optional[RateType]] = mapped_column(
        SQLAlchemyEnum(
            RateType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    rate_value: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 4),
        nullable=True,
        comment="Fraction for percentage rates, amount for fixed rates",
    )

    trainer: Mapped["Trainer"] = relationship("Trainer", back_populates="branches")

    @property
    def rate(self) -> Optional[Rate]:
        return rate_from_columns(self.rate_type, self.rate_value)

    @rate.setter
    def rate(self, rate: Optional[Rate]) -> None:
        self.rate_type = rate.type if rate is not None else None
        self.rate_value = rate.value if rate is not None else None


class Trainer(BaseModel):
    """
    PT trainer.

    A trainer may work at several branches, each with its own rate.
    Soft-deleted trainers keep is_active=False so historical sessions
    still resolve.
    """

    __tablename__ = "trainers"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    color: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Calendar color, unique among active trainers of a branch",
    )
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    branches: Mapped[List[TrainerBranch]] = relationship(
        TrainerBranch,
        back_populates="trainer",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=TrainerBranch.id,
    )

    @property
    def branch_ids(self) -> List[int]:
        return [tb.branch_id for tb in self.branches]

    @property
    def branch_rates(self) -> Dict[int, Rate]:
        return {
            tb.branch_id: tb.rate
            for tb in self.branches
            if tb.rate is not None
        }

    def set_branch_rates(self, rates: Dict[int, Optional[Rate]]) -> None:
        """Replace branch assignments, updating existing rows in place."""
        existing = {tb.branch_id: tb for tb in self.branches}
        for branch_id, tb in existing.items():
            if branch_id not in rates:
                self.branches.remove(tb)
        for branch_id, rate in rates.items():
            tb = existing.get(branch_id)
            if tb is None:
                tb = TrainerBranch(branch_id=branch_id)
                self.branches.append(tb)
            tb.rate = rate

    def __repr__(self) -> str:
        return f"<Trainer(id={self.id}, name='{self.name}', active={self.is_active})>"
