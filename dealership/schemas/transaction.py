# dealership/schemas/transaction.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from dealership.schemas.common import (
    Direction, DocumentReference, PaymentMethod, PersonSummary, SearchParams, VehicleSummary, to_naive_utc,
)

TRANSACTION_SORT_FIELDS = {"created_at", "updated_at", "date", "total_price", "direction"}


class TaxOrFee(BaseModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    percentage: Optional[float] = Field(None, ge=0, le=100)


class Payment(BaseModel):
    method: PaymentMethod
    amount: float = Field(..., ge=0)
    date: datetime
    reference: Optional[str] = None

    naive_date = field_validator("date")(to_naive_utc)


class TransactionCreate(BaseModel):
    vehicle_id: int
    direction: Direction
    counterparty_id: int
    date: datetime
    location: Optional[str] = Field(None, max_length=200)
    base_price: float = Field(..., ge=0)
    taxes: list[TaxOrFee] = Field(default_factory=list)
    fees: list[TaxOrFee] = Field(default_factory=list)
    discount: float = Field(0, ge=0)
    payments: list[Payment] = Field(default_factory=list)
    documents: list[DocumentReference] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)

    naive_date = field_validator("date")(to_naive_utc)


class TransactionUpdate(BaseModel):
    """
    Partial update. Vehicle and direction are fixed once recorded;
    total_price is recomputed whenever a price component changes.
    """
    counterparty_id: Optional[int] = None
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    base_price: Optional[float] = Field(None, ge=0)
    taxes: Optional[list[TaxOrFee]] = None
    fees: Optional[list[TaxOrFee]] = None
    discount: Optional[float] = Field(None, ge=0)
    payments: Optional[list[Payment]] = None
    documents: Optional[list[DocumentReference]] = None
    notes: Optional[str] = Field(None, max_length=1000)

    naive_date = field_validator("date")(to_naive_utc)


class TransactionOut(BaseModel):
    id: int
    vehicle_id: int
    direction: str
    counterparty_id: int
    date: datetime
    location: Optional[str]
    base_price: float
    taxes: list[TaxOrFee]
    fees: list[TaxOrFee]
    discount: float
    total_price: float
    payments: list[Payment]
    documents: list[DocumentReference]
    notes: Optional[str]
    previous_transaction_id: Optional[int]
    vehicle: Optional[VehicleSummary] = None
    counterparty: Optional[PersonSummary] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int]
    updated_by: Optional[int]

    class Config:
        from_attributes = True


class TransactionSearchParams(SearchParams):
    vehicle_id: Optional[int] = None
    direction: Optional[Direction] = None
    counterparty_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    naive_dates = field_validator("start_date", "end_date")(to_naive_utc)
