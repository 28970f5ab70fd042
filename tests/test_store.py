"""
SQLAlchemy store tests against in-memory SQLite.
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ponto.db.store import SqlRecordStore, SqlSettingsStore
from ponto.reports.domain import PunchKind
from ponto.reports.orchestrator import month_bounds
from tests.factories import utc


class TestSqlRecordStore:
    async def test_query_returns_aware_utc_in_order(
        self, db: AsyncSession, employee_user: dict
    ) -> None:
        store = SqlRecordStore(db)
        brt = timezone(timedelta(hours=-3))
        await store.create_punch_event(
            employee_user["id"], PunchKind.EXIT, datetime(2024, 3, 5, 14, 0, tzinfo=brt)
        )
        await store.create_punch_event(employee_user["id"], PunchKind.ENTRY, utc(2024, 3, 5, 8))

        events = await store.query_punch_events(None, *month_bounds(3, 2024))

        assert [e.kind for e in events] == [PunchKind.ENTRY, PunchKind.EXIT]
        assert events[1].timestamp == utc(2024, 3, 5, 17)
        assert all(e.timestamp.tzinfo is not None for e in events)

    async def test_month_bounds_inclusive(self, db: AsyncSession, employee_user: dict) -> None:
        store = SqlRecordStore(db)
        eid = employee_user["id"]
        await store.create_punch_event(eid, PunchKind.ENTRY, utc(2024, 3, 1, 0, 0))
        await store.create_punch_event(
            eid, PunchKind.EXIT, datetime(2024, 3, 31, 23, 59, 59, tzinfo=timezone.utc)
        )
        await store.create_punch_event(eid, PunchKind.ENTRY, utc(2024, 4, 1, 0, 0))
        await store.create_punch_event(
            eid, PunchKind.EXIT, datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)
        )

        events = await store.query_punch_events(eid, *month_bounds(3, 2024))

        assert len(events) == 2

    async def test_get_employees(
        self, db: AsyncSession, employee_user: dict, second_employee: dict
    ) -> None:
        store = SqlRecordStore(db)

        directory = await store.get_employees([employee_user["id"], second_employee["id"]])

        assert {e.display_name for e in directory.values()} == {"Ana Silva", "Bruno Costa"}
        assert await store.get_employees([]) == {}
        ana = await store.get_employee(employee_user["id"])
        assert ana.email == employee_user["email"]
        assert await store.get_employee(uuid.uuid4()) is None

    async def test_delete_restricted_to_employees(
        self, db: AsyncSession, employee_user: dict, second_employee: dict
    ) -> None:
        store = SqlRecordStore(db)
        await store.create_punch_event(employee_user["id"], PunchKind.ENTRY, utc(2024, 3, 5, 8))
        await store.create_punch_event(second_employee["id"], PunchKind.ENTRY, utc(2024, 3, 5, 8))
        await store.create_punch_event(employee_user["id"], PunchKind.ENTRY, utc(2024, 4, 5, 8))

        deleted = await store.delete_punch_events(3, 2024, [employee_user["id"]])

        assert deleted == 1
        remaining = await store.query_punch_events(None, utc(2024, 1, 1), utc(2024, 12, 31))
        assert {(e.employee_id, e.timestamp.month) for e in remaining} == {
            (second_employee["id"], 3),
            (employee_user["id"], 4),
        }

    async def test_activity_counts(
        self, db: AsyncSession, employee_user: dict, second_employee: dict
    ) -> None:
        store = SqlRecordStore(db)
        day = utc(2024, 3, 5).date()
        await store.create_punch_event(employee_user["id"], PunchKind.ENTRY, utc(2024, 3, 5, 8))
        await store.create_punch_event(second_employee["id"], PunchKind.ENTRY, utc(2024, 3, 5, 9))
        await store.create_punch_event(second_employee["id"], PunchKind.EXIT, utc(2024, 3, 5, 17))

        counts = await store.activity_counts(day)

        assert counts == {
            "active_employees": 2,
            "today_entries": 2,
            "today_exits": 1,
            "currently_working": 1,
        }


class TestSqlSettingsStore:
    async def test_upsert(self, db: AsyncSession) -> None:
        store = SqlSettingsStore(db)

        assert await store.get("report_email") is None
        await store.set("report_email", "rh@cleanmyhouse.com.br")
        await store.set("report_email", "financeiro@cleanmyhouse.com.br")

        assert await store.get("report_email") == "financeiro@cleanmyhouse.com.br"
