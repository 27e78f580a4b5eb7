"""Trainer schemas."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from ptstudio.models import RateType
from ptstudio.models.rate import Rate, make_rate


class BranchRateInput(BaseModel):
    """
    A branch assignment. Leave type/value empty for an assignment without
    a configured rate. Percentage values are fractions (0.4 = 40%).
    """

    branch_id: int
    type: Optional[RateType] = None
    value: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_rate(self) -> "BranchRateInput":
        if (self.type is None) != (self.value is None):
            raise ValueError("Rate type and value must be given together")
        if self.type == RateType.PERCENTAGE and self.value > 1:
            raise ValueError("Percentage rates are fractions between 0 and 1")
        return self

    def to_rate(self) -> Optional[Rate]:
        if self.type is None:
            return None
        return make_rate(self.type, self.value)


def rates_by_branch(items: List[BranchRateInput]) -> Dict[int, Optional[Rate]]:
    return {item.branch_id: item.to_rate() for item in items}


class TrainerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., min_length=1, max_length=20)
    photo_url: Optional[str] = Field(None, max_length=500)
    branches: List[BranchRateInput] = Field(..., min_length=1)


class TrainerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, min_length=1, max_length=20)
    photo_url: Optional[str] = Field(None, max_length=500)
    branches: Optional[List[BranchRateInput]] = Field(None, min_length=1)


class BranchRateResponse(BaseModel):
    branch_id: int
    type: Optional[RateType] = None
    value: Optional[Decimal] = None


class TrainerResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    color: str
    photo_url: Optional[str] = None
    branch_ids: List[int]
    branches: List[BranchRateResponse]

    @classmethod
    def from_trainer(cls, trainer) -> "TrainerResponse":
        return cls(
            id=trainer.id,
            name=trainer.name,
            is_active=trainer.is_active,
            color=trainer.color,
            photo_url=trainer.photo_url,
            branch_ids=trainer.branch_ids,
            branches=[
                BranchRateResponse(
                    branch_id=tb.branch_id,
                    type=tb.rate_type,
                    value=tb.rate_value,
                )
                for tb in trainer.branches
            ],
        )


class TrainerUpdateResponse(TrainerResponse):
    """Update result; rates_changed means sessions are being repriced."""

    rates_changed: bool = False
