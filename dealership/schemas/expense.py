# dealership/schemas/expense.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from dealership.schemas.common import (
    DocumentReference, ExpenseCategory, PersonSummary, SearchParams, VehicleSummary, to_naive_utc,
)

EXPENSE_SORT_FIELDS = {"date", "created_at", "updated_at", "amount", "category"}


class ExpenseCreate(BaseModel):
    vehicle_id: Optional[int] = None
    category: ExpenseCategory
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0)
    date: datetime
    payee_id: Optional[int] = None
    attachments: list[DocumentReference] = Field(default_factory=list)

    naive_date = field_validator("date")(to_naive_utc)


class ExpenseUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, ge=0)
    date: Optional[datetime] = None
    payee_id: Optional[int] = None
    attachments: Optional[list[DocumentReference]] = None

    naive_date = field_validator("date")(to_naive_utc)


class ExpenseOut(BaseModel):
    id: int
    vehicle_id: Optional[int]
    category: str
    description: str
    amount: float
    date: datetime
    payee_id: Optional[int]
    attachments: list[DocumentReference]
    vehicle: Optional[VehicleSummary] = None
    payee: Optional[PersonSummary] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int]
    updated_by: Optional[int]

    class Config:
        from_attributes = True


class ExpenseSearchParams(SearchParams):
    vehicle_id: Optional[int] = None
    category: Optional[ExpenseCategory] = None
    payee_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    naive_dates = field_validator("start_date", "end_date")(to_naive_utc)
