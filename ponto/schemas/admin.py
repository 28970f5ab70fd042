import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class ActivityStats(BaseModel):
    active_employees: int
    today_entries: int
    today_exits: int
    currently_working: int


class RecentPunch(BaseModel):
    id: int
    employee_id: uuid.UUID
    employee_name: str
    kind: Literal["entry", "exit"]
    timestamp: datetime
    location: str | None


class PurgeResponse(BaseModel):
    deleted: int


class MonthlyReportRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=9999)
    employee_id: uuid.UUID | None = None
    format: Literal["csv", "pdf"] = "pdf"
    send_email: bool = False


class ReportEmailResponse(BaseModel):
    message: str
    recipient: str


class SettingUpdate(BaseModel):
    key: Literal["report_email"]
    value: EmailStr


class SettingResponse(BaseModel):
    key: str
    value: str | None
