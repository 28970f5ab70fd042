import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PunchCreate(BaseModel):
    kind: Literal["entry", "exit"]
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)
    location: str | None = None

    @field_validator("location")
    @classmethod
    def strip_location(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class PunchEventResponse(BaseModel):
    id: int
    employee_id: uuid.UUID
    kind: Literal["entry", "exit"]
    timestamp: datetime
    location: str | None
    latitude: Decimal | None
    longitude: Decimal | None
