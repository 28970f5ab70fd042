"""
SQLAlchemy-backed record and settings stores.

These are the concrete collaborators handed to the report orchestrator.
Rows are mapped onto the immutable types of ``ponto.reports.domain`` and
every timestamp leaves the store as an aware UTC datetime. Database
failures surface as StorageError; retries are not attempted here.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.core.exceptions import StorageError
from ponto.db.models import PunchEvent as PunchEventRow
from ponto.db.models import Setting, User
from ponto.reports.domain import Employee, PunchEvent, PunchKind
from ponto.reports.orchestrator import month_bounds

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. from SQLite) as UTC, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_domain_event(row: PunchEventRow) -> PunchEvent:
    return PunchEvent(
        id=row.id,
        employee_id=row.employee_id,
        kind=PunchKind(row.kind),
        timestamp=as_utc(row.timestamp),
        location=row.location,
        latitude=row.latitude,
        longitude=row.longitude,
    )


def to_employee(user: User) -> Employee:
    return Employee.from_names(user.id, user.first_name, user.last_name, user.email)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


class SqlRecordStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def query_punch_events(
        self,
        employee_id: uuid.UUID | None,
        start: datetime,
        end: datetime,
    ) -> list[PunchEvent]:
        stmt = select(PunchEventRow).where(
            PunchEventRow.timestamp.between(as_utc(start), as_utc(end))
        )
        if employee_id is not None:
            stmt = stmt.where(PunchEventRow.employee_id == employee_id)
        stmt = stmt.order_by(PunchEventRow.timestamp, PunchEventRow.id)

        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Punch event query failed (employee=%s): %s", employee_id, exc)
            raise StorageError(f"Failed to query punch events: {exc}") from exc
        return [to_domain_event(row) for row in result.scalars().all()]

    async def get_employee(self, employee_id: uuid.UUID) -> Employee | None:
        try:
            result = await self._db.execute(select(User).where(User.id == employee_id))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load employee {employee_id}: {exc}") from exc
        user = result.scalar_one_or_none()
        return to_employee(user) if user is not None else None

    async def get_employees(self, employee_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Employee]:
        ids = list(employee_ids)
        if not ids:
            return {}
        try:
            result = await self._db.execute(select(User).where(User.id.in_(ids)))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load employees: {exc}") from exc
        return {user.id: to_employee(user) for user in result.scalars().all()}

    async def create_punch_event(
        self,
        employee_id: uuid.UUID,
        kind: PunchKind,
        timestamp: datetime,
        location: str | None = None,
        latitude: Decimal | None = None,
        longitude: Decimal | None = None,
    ) -> PunchEvent:
        row = PunchEventRow(
            employee_id=employee_id,
            kind=PunchKind(kind).value,
            timestamp=as_utc(timestamp),
            location=location,
            latitude=latitude,
            longitude=longitude,
        )
        self._db.add(row)
        try:
            await self._db.commit()
            await self._db.refresh(row)
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise StorageError(f"Failed to record punch: {exc}") from exc
        return to_domain_event(row)

    async def delete_punch_events(
        self,
        month: int,
        year: int,
        employee_ids: Iterable[uuid.UUID] | None = None,
    ) -> int:
        """Bulk purge of a month's punches, optionally restricted to some employees."""
        start, end = month_bounds(month, year)

        stmt = delete(PunchEventRow).where(PunchEventRow.timestamp.between(start, end))
        if employee_ids is not None:
            stmt = stmt.where(PunchEventRow.employee_id.in_(list(employee_ids)))

        try:
            result = await self._db.execute(stmt)
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise StorageError(f"Failed to delete punch events: {exc}") from exc

        deleted = result.rowcount or 0
        logger.info("Purged %d punch events for %02d/%d", deleted, month, year)
        return deleted

    async def recent_punch_events(self, limit: int = 20) -> list[tuple[PunchEvent, Employee]]:
        stmt = (
            select(PunchEventRow, User)
            .join(User, PunchEventRow.employee_id == User.id)
            .order_by(PunchEventRow.timestamp.desc(), PunchEventRow.id.desc())
            .limit(limit)
        )
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load recent punches: {exc}") from exc
        return [(to_domain_event(row), to_employee(user)) for row, user in result.all()]

    async def activity_counts(self, day: date) -> dict[str, int]:
        """Active employees plus entries, exits and people currently clocked in on ``day``."""
        start, end = _day_bounds(day)
        try:
            active = await self._db.scalar(
                select(func.count(User.id)).where(
                    User.is_active == True,  # noqa: E712
                    User.role == "employee",
                )
            )
            result = await self._db.execute(
                select(PunchEventRow)
                .where(PunchEventRow.timestamp.between(start, end))
                .order_by(PunchEventRow.timestamp, PunchEventRow.id)
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to compute activity counts: {exc}") from exc

        events = [to_domain_event(row) for row in result.scalars().all()]
        last_kind: dict[uuid.UUID, PunchKind] = {}
        for event in events:
            last_kind[event.employee_id] = event.kind

        return {
            "active_employees": int(active or 0),
            "today_entries": sum(1 for e in events if e.kind == PunchKind.ENTRY),
            "today_exits": sum(1 for e in events if e.kind == PunchKind.EXIT),
            "currently_working": sum(1 for k in last_kind.values() if k == PunchKind.ENTRY),
        }


class SqlSettingsStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get(self, key: str) -> str | None:
        try:
            result = await self._db.execute(select(Setting.value).where(Setting.key == key))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read setting '{key}': {exc}") from exc
        return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> Setting:
        """Create on first write, overwrite afterwards."""
        try:
            result = await self._db.execute(select(Setting).where(Setting.key == key))
            setting = result.scalar_one_or_none()
            if setting is None:
                setting = Setting(key=key, value=value)
                self._db.add(setting)
            else:
                setting.value = value
            await self._db.commit()
            await self._db.refresh(setting)
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise StorageError(f"Failed to save setting '{key}': {exc}") from exc
        return setting
