"""Workplaces router: create, lookup and sharded paginated listing."""
from enum import IntEnum
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, field_validator
from typing import Optional

from shiftlib.pagination import MAX_PAGE_SIZE, PAGE_SIZE
from ..dependencies import get_db, _sanitize_500
from .listing import page_request, paginated

router = APIRouter()


class WorkplaceStatus(IntEnum):
    ACTIVE = 0
    SUSPENDED = 1
    CLOSED = 2


class WorkplaceCreate(BaseModel):
    name: str
    status: WorkplaceStatus = WorkplaceStatus.ACTIVE

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('name must not be empty')
        return v.strip()


@router.post("/api/workplaces", tags=["Workplaces"], summary="Create workplace", status_code=201)
def create_workplace(body: WorkplaceCreate):
    try:
        return get_db().create_workplace({'name': body.name, 'status': int(body.status)})
    except OSError as e:
        raise _sanitize_500(e, 'create_workplace')


@router.get("/api/workplaces", tags=["Workplaces"], summary="List workplaces",
            description=(
                "Return one page of workplaces ordered by id. With `shard`, only that "
                "shard's partition is paginated; a shard past the end returns an empty page."
            ))
def list_workplaces(
    request: Request,
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    shard: Optional[int] = Query(None, ge=0, description="0-based shard index"),
):
    data, next_page = get_db().get_workplaces_page(page_request(page, limit, shard))
    return paginated(request, data, next_page)


@router.get("/api/workplaces/{wp_id}", tags=["Workplaces"], summary="Get workplace")
def get_workplace(wp_id: int):
    wp = get_db().get_workplace(wp_id)
    if wp is None:
        raise HTTPException(status_code=404, detail=f"Workplace ID {wp_id} not found.")
    return wp
