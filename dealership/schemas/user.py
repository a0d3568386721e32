# dealership/schemas/user.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal

Role = Literal["Admin", "Manager", "Clerk"]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=200, pattern=r"^\S+@\S+\.\S+$")
    role: Role = "Clerk"


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreated(UserOut):
    api_key: str      # returned once, never stored in clear
