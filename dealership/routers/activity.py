# dealership/routers/activity.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dealership.database import get_db
from dealership.schemas.activity_log import ActivityLogOut, ActivitySearchParams
from dealership.services import activity_service
from dealership.services.auth_service import READ, Principal, require_permission

router = APIRouter()


@router.get("/activity", summary="Audit trail: newest first")
def list_activity(
    params: Annotated[ActivitySearchParams, Query()],
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(READ)),
):
    items, pagination = activity_service.list_activity(db, params)
    return {"data": [ActivityLogOut.model_validate(a) for a in items], "pagination": pagination}
