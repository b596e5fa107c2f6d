from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import math

from app.core.config import settings
from app.core.database import get_db
from app.schemas.waitlist import (
    Pagination,
    WaitlistEntry as WaitlistEntrySchema,
    WaitlistEntryCreate,
    WaitlistEntryResponse,
    WaitlistListResponse,
    WaitlistStats,
    WaitlistStatsResponse,
    WaitlistStatusUpdate,
)
from app.services.waitlist_service import WaitlistService

router = APIRouter()


def get_waitlist_service(db: Session = Depends(get_db)) -> WaitlistService:
    return WaitlistService(db)


@router.get("", response_model=WaitlistListResponse)
async def list_waitlist(
    status: Optional[str] = Query(None, description="Pending, Approved or Rejected"),
    product_id: Optional[str] = Query(None, alias="productId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: WaitlistService = Depends(get_waitlist_service),
):
    """Fetch waitlist entries, newest first, optionally filtered by status and product"""
    entries, total = service.list_entries(status=status, product_id=product_id, page=page, limit=limit)
    return WaitlistListResponse(
        data=[WaitlistEntrySchema.model_validate(e) for e in entries],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


# Declared before /{entry_id} so "stats" is not taken for an id
@router.get("/stats/summary", response_model=WaitlistStatsResponse)
async def waitlist_stats(service: WaitlistService = Depends(get_waitlist_service)):
    """Entry counts grouped by status plus the overall total"""
    return WaitlistStatsResponse(data=WaitlistStats.model_validate(service.stats_summary()))


@router.get("/{entry_id}", response_model=WaitlistEntryResponse)
async def get_waitlist_entry(entry_id: str, service: WaitlistService = Depends(get_waitlist_service)):
    entry = service.get_entry(entry_id)
    return WaitlistEntryResponse(data=WaitlistEntrySchema.model_validate(entry))


@router.post("", response_model=WaitlistEntryResponse, status_code=201)
async def create_waitlist_entry(
    payload: WaitlistEntryCreate,
    service: WaitlistService = Depends(get_waitlist_service),
):
    """Add a customer to the waitlist (always Pending)"""
    entry = service.create_entry(payload)
    return WaitlistEntryResponse(
        message="Successfully added to waitlist",
        data=WaitlistEntrySchema.model_validate(entry),
    )


@router.put("/{entry_id}", response_model=WaitlistEntryResponse)
async def update_waitlist_status(
    entry_id: str,
    payload: WaitlistStatusUpdate,
    service: WaitlistService = Depends(get_waitlist_service),
):
    entry = service.update_status(entry_id, payload.status)
    return WaitlistEntryResponse(
        message=f"Status updated to {entry.status.value}",
        data=WaitlistEntrySchema.model_validate(entry),
    )


@router.delete("/{entry_id}", response_model=WaitlistEntryResponse)
async def delete_waitlist_entry(entry_id: str, service: WaitlistService = Depends(get_waitlist_service)):
    entry = service.delete_entry(entry_id)
    return WaitlistEntryResponse(
        message="Waitlist entry removed",
        data=WaitlistEntrySchema.model_validate(entry),
    )
