# dealership/schemas/vehicle.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Literal

from dealership.schemas.common import (
    DocumentReference, ImageReference, OwnershipStatus, SearchParams,
)

Transmission = Literal["Manual", "Automatic", "CVT"]
FuelType = Literal["Petrol", "Diesel", "Electric", "Hybrid"]

VEHICLE_SORT_FIELDS = {"updated_at", "created_at", "registration_number", "make",
                       "vehicle_model", "year", "mileage", "ownership_status"}


def _check_year(value: Optional[int]) -> Optional[int]:
    if value is not None and value > datetime.utcnow().year + 2:
        raise ValueError(f"year cannot be later than {datetime.utcnow().year + 2}")
    return value


class VehicleCreate(BaseModel):
    registration_number: str = Field(..., min_length=1, max_length=20)
    vin: Optional[str] = Field(None, max_length=17)
    make: str = Field(..., min_length=1, max_length=50)
    vehicle_model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900)
    engine_capacity: Optional[float] = Field(None, gt=0)
    color: Optional[str] = Field(None, max_length=30)
    mileage: Optional[float] = Field(None, ge=0)
    transmission: Optional[Transmission] = None
    fuel_type: Optional[FuelType] = None
    body_type: Optional[str] = Field(None, max_length=50)
    ownership_status: OwnershipStatus = "NotOwned"
    tags: list[str] = Field(default_factory=list)
    images: list[ImageReference] = Field(default_factory=list)
    documents: list[DocumentReference] = Field(default_factory=list)

    check_year = field_validator("year")(_check_year)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, tags: list[str]) -> list[str]:
        tags = [t.strip() for t in tags if t and t.strip()]
        if any(len(t) > 50 for t in tags):
            raise ValueError("tags must be at most 50 characters")
        return tags


class VehicleUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""
    registration_number: Optional[str] = Field(None, min_length=1, max_length=20)
    vin: Optional[str] = Field(None, max_length=17)
    make: Optional[str] = Field(None, min_length=1, max_length=50)
    vehicle_model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900)
    engine_capacity: Optional[float] = Field(None, gt=0)
    color: Optional[str] = Field(None, max_length=30)
    mileage: Optional[float] = Field(None, ge=0)
    transmission: Optional[Transmission] = None
    fuel_type: Optional[FuelType] = None
    body_type: Optional[str] = Field(None, max_length=50)
    ownership_status: Optional[OwnershipStatus] = None
    tags: Optional[list[str]] = None
    images: Optional[list[ImageReference]] = None
    documents: Optional[list[DocumentReference]] = None

    check_year = field_validator("year")(_check_year)


class VehicleOut(BaseModel):
    id: int
    registration_number: str
    vin: Optional[str]
    make: str
    vehicle_model: str
    year: int
    engine_capacity: Optional[float]
    color: Optional[str]
    mileage: Optional[float]
    transmission: Optional[str]
    fuel_type: Optional[str]
    body_type: Optional[str]
    ownership_status: str
    tags: list[str]
    images: list[ImageReference]
    documents: list[DocumentReference]
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int]
    updated_by: Optional[int]

    class Config:
        from_attributes = True


class VehicleSearchParams(SearchParams):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    status: Optional[str] = None        # single status or comma-separated list
    min_year: Optional[int] = None
    max_year: Optional[int] = None
