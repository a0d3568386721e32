# dealership/schemas/activity_log.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Optional, Literal

from dealership.config import settings

EntityType = Literal["User", "Person", "Vehicle", "Transaction", "Expense"]
Action = Literal["CREATE", "UPDATE", "DELETE", "RESTORE", "LOGIN", "LOGOUT"]


class ActivityLogOut(BaseModel):
    id: int
    actor_id: int
    action: str
    entity_type: str
    entity_id: int
    diff: Optional[dict[str, Any]]
    ip: Optional[str]
    user_agent: Optional[str]
    at: datetime

    class Config:
        from_attributes = True


class ActivitySearchParams(BaseModel):
    entity_type: Optional[EntityType] = None
    entity_id: Optional[int] = None
    actor_id: Optional[int] = None
    action: Optional[Action] = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=settings.MAX_PAGE_SIZE)
