from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["admin", "employee"] = "employee"
    first_name: str | None = None
    last_name: str | None = None


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = None
    role: Literal["admin", "employee"] | None = None
    is_active: bool | None = None
    first_name: str | None = None
    last_name: str | None = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    role: str
    first_name: str | None
    last_name: str | None
    display_name: str
    is_active: bool
