# dealership/routers/reports.py
"""
P&L, profit per vehicle, and downloadable report export.
A `to` date without a time covers that whole day.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.exceptions import BusinessRuleError
from dealership.schemas.common import to_naive_utc
from dealership.services import report_service
from dealership.services.auth_service import READ, Principal, require_permission

router = APIRouter()


def _check_window(start: datetime, end: datetime):
    if start > report_service.end_of_day(end):
        raise BusinessRuleError("Invalid parameters", details={"from": "must not be after 'to'"})


@router.get("/reports/pnl", summary="Profit & loss for a window, with period breakdown")
def pnl(
    from_: datetime = Query(..., alias="from"),
    to: datetime = Query(...),
    period: Literal["daily", "weekly", "monthly"] = "monthly",
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    from_, to = to_naive_utc(from_), to_naive_utc(to)
    _check_window(from_, to)
    return {"data": report_service.pnl_report(db, from_, to, period)}


@router.get("/reports/profit-per-vehicle", summary="Cycle-matched profit per vehicle")
def profit_per_vehicle(
    vehicle_id: Optional[int] = None,
    from_: Optional[datetime] = Query(None, alias="from"),
    to: Optional[datetime] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    return report_service.profit_per_vehicle(db, vehicle_id, to_naive_utc(from_), to_naive_utc(to))


@router.get("/reports/export", summary="Download the P&L report as CSV, HTML or PDF")
def export(
    from_: datetime = Query(..., alias="from"),
    to: datetime = Query(...),
    format: Literal["csv", "html", "pdf"] = "csv",
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    from_, to = to_naive_utc(from_), to_naive_utc(to)
    _check_window(from_, to)
    content, media_type, filename = report_service.export_report(db, from_, to, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
