# dealership/schemas/person.py
import re
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional

from dealership.schemas.common import FileReference, PersonType, SearchParams

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"

PERSON_SORT_FIELDS = {"updated_at", "created_at", "full_name", "business_name", "type"}


class PersonCreate(BaseModel):
    type: PersonType
    full_name: Optional[str] = Field(None, max_length=200)
    business_name: Optional[str] = Field(None, max_length=200)
    nic_or_passport: Optional[str] = Field(None, max_length=50)
    company_reg_no: Optional[str] = Field(None, max_length=50)
    phone: list[str] = Field(..., min_length=1)
    email: Optional[str] = Field(None, max_length=200, pattern=EMAIL_PATTERN)
    address: Optional[str] = Field(None, max_length=500)
    images: list[FileReference] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)
    is_blacklisted: bool = False
    risk_notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def blank_identifiers_to_none(cls, data):
        if isinstance(data, dict):
            for key in ("nic_or_passport", "company_reg_no", "email"):
                if isinstance(data.get(key), str) and not data[key].strip():
                    data = {**data, key: None}
        return data

    @model_validator(mode="after")
    def name_matches_type(self):
        if self.type == "Individual" and not self.full_name:
            raise ValueError("Full name is required for individuals")
        if self.type != "Individual" and not self.business_name:
            raise ValueError("Business name is required for dealers and companies")
        return self


class PersonUpdate(BaseModel):
    """Partial update. Empty strings on unique identifiers are stored as null."""
    type: Optional[PersonType] = None
    full_name: Optional[str] = Field(None, max_length=200)
    business_name: Optional[str] = Field(None, max_length=200)
    nic_or_passport: Optional[str] = Field(None, max_length=50)
    company_reg_no: Optional[str] = Field(None, max_length=50)
    phone: Optional[list[str]] = Field(None, min_length=1)
    email: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    images: Optional[list[FileReference]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    is_blacklisted: Optional[bool] = None
    risk_notes: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def email_shape(cls, value: Optional[str]) -> Optional[str]:
        if value and not re.match(EMAIL_PATTERN, value):
            raise ValueError("email must be a valid address")
        return value


class PersonOut(BaseModel):
    id: int
    type: str
    full_name: Optional[str]
    business_name: Optional[str]
    nic_or_passport: Optional[str]
    company_reg_no: Optional[str]
    phone: list[str]
    email: Optional[str]
    address: Optional[str]
    images: list[FileReference]
    notes: Optional[str]
    is_blacklisted: bool
    risk_notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int]
    updated_by: Optional[int]

    class Config:
        from_attributes = True


class PersonSearchParams(SearchParams):
    type: Optional[PersonType] = None
    is_blacklisted: Optional[bool] = None
