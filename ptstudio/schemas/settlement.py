"""Settlement report schemas."""

from decimal import Decimal
from typing import List

from pydantic import BaseModel

from ptstudio.schemas.session import SessionResponse


class TrainerStatResponse(BaseModel):
    trainer_id: int
    trainer_name: str
    session_count: int
    total_fee: Decimal
    total_revenue: Decimal

    model_config = {"from_attributes": True}


class SettlementSummaryResponse(BaseModel):
    trainer_count: int
    session_count: int
    total_fee: Decimal
    total_revenue: Decimal

    model_config = {"from_attributes": True}


class SettlementResponse(BaseModel):
    """Per-trainer rows for a period, highest fee first, and their totals."""

    trainers: List[TrainerStatResponse]
    summary: SettlementSummaryResponse


class TrainerSettlementResponse(BaseModel):
    stat: TrainerStatResponse
    sessions: List[SessionResponse]
