# dealership/routers/analytics.py
"""Sale rankings, income summaries and the dashboard counters."""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.common import to_naive_utc
from dealership.services import report_service
from dealership.services.auth_service import READ, Principal, require_permission

router = APIRouter()


@router.get("/analytics/top-performers", summary="Best sales by profit, margin, revenue or speed")
def top_performers(
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["profit", "margin", "revenue", "speed"] = "profit",
    period: Literal["all", "month", "year"] = "all",
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return report_service.top_performers(db, limit=limit, sort_by=sort_by, period=period)


@router.get("/analytics/income", summary="Income for one vehicle or a date range")
def income(
    vehicle_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    """vehicle_id wins; otherwise the date range; with neither, every sale."""
    if vehicle_id is not None:
        return report_service.vehicle_income(db, vehicle_id)
    return report_service.period_income(db, to_naive_utc(start_date), to_naive_utc(end_date))


@router.get("/stats/quick", summary="Dashboard counters")
def quick_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return report_service.quick_stats(db)
