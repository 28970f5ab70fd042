"""
Value types shared by the reconciliation and report pipeline.

Everything here is immutable and independent of the ORM: the store maps
rows onto these types and the rest of the pipeline never touches the
database session.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

UNKNOWN_EMPLOYEE_NAME = "Usuário Desconhecido"


class PunchKind(str, enum.Enum):
    ENTRY = "entry"
    EXIT = "exit"


class ShiftStatus(str, enum.Enum):
    COMPLETE = "complete"
    ENTRY_WITHOUT_EXIT = "entry-without-exit"
    EXIT_WITHOUT_ENTRY = "exit-without-entry"


@dataclass(frozen=True)
class PunchEvent:
    id: int
    employee_id: uuid.UUID
    kind: PunchKind
    timestamp: datetime
    location: str | None = None
    latitude: Decimal | None = None
    longitude: Decimal | None = None


def display_name_for(
    first_name: str | None, last_name: str | None, email: str | None
) -> str:
    """First + last name, falling back to the e-mail, then to a placeholder."""
    full = f"{first_name or ''} {last_name or ''}".strip()
    if full:
        return full
    if email and email.strip():
        return email.strip()
    return UNKNOWN_EMPLOYEE_NAME


@dataclass(frozen=True)
class Employee:
    id: uuid.UUID
    display_name: str
    email: str | None = None

    @classmethod
    def from_names(
        cls,
        id: uuid.UUID,
        first_name: str | None,
        last_name: str | None,
        email: str | None,
    ) -> Employee:
        return cls(id=id, display_name=display_name_for(first_name, last_name, email), email=email)


@dataclass(frozen=True)
class ShiftPair:
    employee: Employee
    date: date
    entry: PunchEvent | None
    exit: PunchEvent | None
    worked_duration: timedelta | None
    status: ShiftStatus

    @property
    def is_anomalous(self) -> bool:
        """Exit recorded before entry (clock skew or out-of-order punches)."""
        return self.worked_duration is not None and self.worked_duration < timedelta(0)


@dataclass(frozen=True)
class MonthlyReport:
    month: int
    year: int
    pairs: tuple[ShiftPair, ...] = field(default_factory=tuple)
    employee_id: uuid.UUID | None = None

    @property
    def is_empty(self) -> bool:
        return not self.pairs


@dataclass(frozen=True)
class EmployeeSection:
    employee: Employee
    pairs: tuple[ShiftPair, ...]
    total_worked: timedelta
