"""Scheduling router - FastAPI endpoints for the provider calendar"""

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ...config import PROVIDER_HEADER
from ...database import get_db
from .schemas import (
    BlockedInterval,
    DailyStats,
    DropTarget,
    Job,
    MonthlyStats,
    StatusChangeRequest,
    UnassignedJob,
    WeeklyStats,
)
from .service import SchedulingContext, SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


def get_scheduling_context(
    provider_id: Optional[str] = Header(None, alias=PROVIDER_HEADER),
) -> SchedulingContext:
    """Build the explicit provider context from the request"""
    if not provider_id or not provider_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {PROVIDER_HEADER} header")
    return SchedulingContext(provider_id=provider_id.strip())


# ============================================================================
# STATS
# ============================================================================


@router.get("/stats/daily", response_model=DailyStats)
async def get_daily_stats(
    day: date = Query(..., alias="date"),
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Capacity, utilization and conflicts for one day"""
    return service.daily_stats(ctx, day)


@router.get("/stats/weekly", response_model=WeeklyStats)
async def get_weekly_stats(
    week_start: date = Query(..., alias="weekStart"),
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Per-worker, per-day breakdown for the Monday-based week containing weekStart"""
    return service.weekly_stats(ctx, week_start)


@router.get("/stats/monthly", response_model=MonthlyStats)
async def get_monthly_stats(
    month: str = Query(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM"),
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    year, month_number = (int(part) for part in month.split("-"))
    return service.monthly_stats(ctx, date(year, month_number, 1))


# ============================================================================
# CALENDAR OVERLAYS
# ============================================================================


@router.get("/blocked", response_model=List[BlockedInterval])
async def get_blocked_intervals(
    day: date = Query(..., alias="date"),
    worker_id: Optional[str] = Query(None, alias="workerId"),
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Blocked overlays for a day, optionally for one worker's row"""
    return service.blocked_intervals(ctx, day, worker_id)


@router.get("/unassigned", response_model=List[UnassignedJob])
async def get_unassigned_jobs(
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Open jobs nobody is assigned to, soonest first"""
    return service.unassigned_queue(ctx, datetime.now())


# ============================================================================
# RESCHEDULING
# ============================================================================


@router.post("/jobs/{job_id}/move", response_model=Job)
async def move_job(
    job_id: str,
    target: DropTarget,
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Apply a drag-and-drop move.
    Returns the stored job; a rejected move changes nothing.
    """
    return service.reschedule_job(ctx, job_id, target)


@router.patch("/jobs/{job_id}/status", response_model=Job)
async def change_job_status(
    job_id: str,
    data: StatusChangeRequest,
    ctx: SchedulingContext = Depends(get_scheduling_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Advance a job one step through its lifecycle, or cancel it"""
    return service.change_job_status(ctx, job_id, data.status)
