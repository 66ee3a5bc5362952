"""Shifts router: create, lookup, paginated listing, claim and cancel."""
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field
from typing import Optional

from shiftlib.errors import InvalidStateTransition, PreconditionFailed, ShiftNotFound
from shiftlib.pagination import MAX_PAGE_SIZE, PAGE_SIZE
from ..dependencies import get_db, get_lifecycle, limiter, RATE_LIMIT, _logger, _sanitize_500
from .listing import page_request, paginated

router = APIRouter()


class ShiftCreate(BaseModel):
    workplaceId: int = Field(..., ge=1)
    startAt: Optional[str] = None
    endAt: Optional[str] = None


class ClaimBody(BaseModel):
    workerId: int = Field(..., ge=1)


@router.post("/api/shifts", tags=["Shifts"], summary="Create shift", status_code=201)
def create_shift(body: ShiftCreate):
    db = get_db()
    if db.get_workplace(body.workplaceId) is None:
        raise HTTPException(status_code=400, detail=f"Workplace ID {body.workplaceId} not found.")
    try:
        return db.create_shift(body.model_dump())
    except OSError as e:
        raise _sanitize_500(e, 'create_shift')


@router.get("/api/shifts", tags=["Shifts"], summary="List shifts",
            description="Return one page of shifts ordered by id. `links.next` is present while more pages exist.")
def list_shifts(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
):
    data, next_page = get_db().get_shifts_page(page_request(page, limit))
    return paginated(request, data, next_page)


@router.get("/api/shifts/{shift_id}", tags=["Shifts"], summary="Get shift")
def get_shift(shift_id: int):
    shift = get_db().get_shift(shift_id)
    if shift is None:
        raise HTTPException(status_code=404, detail=f"Shift ID {shift_id} not found.")
    return shift


@router.post("/api/shifts/{shift_id}/claim", tags=["Shifts"], summary="Claim shift",
             description="Assign a worker to an unclaimed or cancelled shift. 400 if the shift is already claimed.")
@limiter.limit(RATE_LIMIT)
def claim_shift(request: Request, shift_id: int, body: ClaimBody):
    try:
        return get_lifecycle().claim(shift_id, body.workerId)
    except ShiftNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateTransition as e:
        _logger.warning("CLAIM rejected | shift=%s worker=%s state=%s", shift_id, body.workerId, e.state.value)
        raise HTTPException(status_code=400, detail=str(e))
    except PreconditionFailed as e:
        _logger.warning("CLAIM contended | shift=%s worker=%s", shift_id, body.workerId)
        raise HTTPException(status_code=409, detail=f"Shift ID {e.record_id} is being modified, retry.")


@router.post("/api/shifts/{shift_id}/cancel", tags=["Shifts"], summary="Cancel shift claim",
             description="Release a claimed shift and record the cancellation time. 400 if the shift is not claimed.")
@limiter.limit(RATE_LIMIT)
def cancel_shift(request: Request, shift_id: int):
    try:
        return get_lifecycle().cancel(shift_id)
    except ShiftNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateTransition as e:
        _logger.warning("CANCEL rejected | shift=%s state=%s", shift_id, e.state.value)
        raise HTTPException(status_code=400, detail=str(e))
    except PreconditionFailed as e:
        _logger.warning("CANCEL contended | shift=%s", shift_id)
        raise HTTPException(status_code=409, detail=f"Shift ID {e.record_id} is being modified, retry.")
