"""Trainer settlement endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.session import SessionResponse
from ptstudio.schemas.settlement import (
    SettlementResponse,
    SettlementSummaryResponse,
    TrainerSettlementResponse,
    TrainerStatResponse,
)
from ptstudio.services import settlement
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/settlement", tags=["Settlement"])


@router.get("", response_model=SettlementResponse)
async def settlement_report(
    start: date = Query(..., description="First day, inclusive"),
    end: date = Query(..., description="Last day, inclusive"),
    branch_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    stats = await settlement.settlement_report(store, caller, start, end, branch_id)
    return SettlementResponse(
        trainers=[TrainerStatResponse.model_validate(s) for s in stats],
        summary=SettlementSummaryResponse.model_validate(settlement.summarize(stats)),
    )


@router.get("/trainers/{trainer_id}", response_model=TrainerSettlementResponse)
async def trainer_settlement(
    trainer_id: int,
    start: date = Query(...),
    end: date = Query(...),
    branch_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    detail = await settlement.trainer_settlement(store, caller, trainer_id, start, end, branch_id)
    return TrainerSettlementResponse(
        stat=TrainerStatResponse.model_validate(detail.stat),
        sessions=[SessionResponse.from_session(s) for s in detail.sessions],
    )
