"""Training session endpoints."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ptstudio.auth.dependencies import get_caller, get_store
from ptstudio.db import Store
from ptstudio.schemas.program import ProgramResponse
from ptstudio.schemas.session import (
    BookingResponse,
    SessionBook,
    SessionComplete,
    SessionEdit,
    SessionFeeUpdate,
    SessionResponse,
)
from ptstudio.services import sessions
from ptstudio.services.scope import CallerContext

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    program_id: Optional[int] = Query(None),
    trainer_id: Optional[int] = Query(None),
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    items = await sessions.list_sessions(store, caller, start, end, program_id, trainer_id)
    return [SessionResponse.from_session(s) for s in items]


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    session, _ = await sessions.load_session(store, caller, session_id)
    return SessionResponse.from_session(session)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_session(
    request: SessionBook,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """
    Book a session; one record is created per attending member.
    Members whose record could not be saved are listed in failed_member_ids.
    """
    report = await sessions.book_sessions(store, caller, request)
    return BookingResponse(
        sessions=[SessionResponse.from_session(s) for s in report.sessions],
        failed_member_ids=report.failed_member_ids,
    )


@router.patch("/{session_id}", response_model=SessionResponse)
async def edit_session(
    session_id: int,
    changes: SessionEdit,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return SessionResponse.from_session(
        await sessions.edit_session(store, caller, session_id, changes)
    )


@router.post("/{session_id}/complete")
async def complete_session(
    session_id: int,
    request: SessionComplete,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    session, program = await sessions.complete_session(
        store, caller, session_id, request.attended_member_ids, request.session_fee
    )
    return {
        "session": SessionResponse.from_session(session),
        "program": ProgramResponse.from_program(program),
    }


@router.post("/{session_id}/revert", response_model=SessionResponse)
async def revert_session(
    session_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    """Admin only. The program's completed count is recounted by reconcile."""
    return SessionResponse.from_session(await sessions.revert_session(store, caller, session_id))


@router.put("/{session_id}/fee", response_model=SessionResponse)
async def adjust_session_fee(
    session_id: int,
    request: SessionFeeUpdate,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    return SessionResponse.from_session(
        await sessions.adjust_session_fee(store, caller, session_id, request.session_fee)
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: int,
    store: Store = Depends(get_store),
    caller: CallerContext = Depends(get_caller),
):
    await sessions.delete_session(store, caller, session_id)
