# dealership/schemas/common.py
"""Shared field types, nested line items and list-query parameters."""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Literal, Optional

from dealership.config import settings

OwnershipStatus = Literal["NotOwned", "InStock", "Booked", "Sold"]
Direction = Literal["IN", "OUT"]
PersonType = Literal["Individual", "Dealer", "Company"]
ExpenseCategory = Literal["Repair", "Service", "Transport", "Commission", "Other"]
DocumentType = Literal["Contract", "Invoice", "Receipt", "Registration", "Insurance", "Other"]
PaymentMethod = Literal["Cash", "Bank Transfer", "Check", "Card", "Other"]
SortOrder = Literal["asc", "desc"]

OWNERSHIP_STATUSES = ("NotOwned", "InStock", "Booked", "Sold")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; offset-aware input is converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ImageReference(BaseModel):
    url: str
    caption: Optional[str] = None
    is_primary: bool = False
    thumbnail_url: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class FileReference(BaseModel):
    url: str
    caption: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class DocumentReference(BaseModel):
    type: DocumentType
    url: str
    filename: str
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)


class SearchParams(BaseModel):
    """Query parameters accepted by every list endpoint."""
    q: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    sort_by: Optional[str] = None
    sort_order: SortOrder = "desc"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class VehicleSummary(BaseModel):
    id: int
    registration_number: str
    make: str
    vehicle_model: str
    year: Optional[int] = None

    class Config:
        from_attributes = True


class PersonSummary(BaseModel):
    id: int
    type: str
    full_name: Optional[str] = None
    business_name: Optional[str] = None

    class Config:
        from_attributes = True
