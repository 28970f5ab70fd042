"""
Admin route tests: activity counters, recent records, purge,
monthly reports (download and e-mail) and settings.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ponto.core.exceptions import EncodingError
from ponto.db.store import SqlRecordStore, SqlSettingsStore
from ponto.reports import orchestrator as orchestrator_module
from ponto.reports.domain import PunchKind
from ponto.services.email import SmtpEmailSender
from tests.factories import utc


@pytest_asyncio.fixture
async def march_punches(db: AsyncSession, employee_user: dict, second_employee: dict) -> None:
    store = SqlRecordStore(db)
    ana, bruno = employee_user["id"], second_employee["id"]
    await store.create_punch_event(ana, PunchKind.ENTRY, utc(2024, 3, 5, 8), "Escritório")
    await store.create_punch_event(ana, PunchKind.EXIT, utc(2024, 3, 5, 17, 30), "Escritório")
    await store.create_punch_event(bruno, PunchKind.ENTRY, utc(2024, 3, 6, 9))
    await store.create_punch_event(ana, PunchKind.ENTRY, utc(2024, 4, 1, 8))


class TestActivity:
    async def test_stats(
        self,
        client: AsyncClient,
        db: AsyncSession,
        admin_headers: dict,
        employee_user: dict,
        second_employee: dict,
    ) -> None:
        store = SqlRecordStore(db)
        now = datetime.now(timezone.utc)
        await store.create_punch_event(employee_user["id"], PunchKind.ENTRY, now)

        resp = await client.get("/api/admin/stats", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {
            "active_employees": 2,
            "today_entries": 1,
            "today_exits": 0,
            "currently_working": 1,
        }

    async def test_recent_records(
        self, client: AsyncClient, admin_headers: dict, march_punches: None
    ) -> None:
        resp = await client.get(
            "/api/admin/recent-records", params={"limit": 2}, headers=admin_headers
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert len(data) == 2
        assert data[0]["employee_name"] == "Ana Silva"
        assert data[0]["timestamp"].startswith("2024-04-01")
        assert data[1]["employee_name"] == "Bruno Costa"


class TestPurge:
    async def test_purge_month(
        self, client: AsyncClient, admin_headers: dict, march_punches: None
    ) -> None:
        resp = await client.delete(
            "/api/admin/punches", params={"month": 3, "year": 2024}, headers=admin_headers
        )
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"deleted": 3}

        recent = await client.get("/api/admin/recent-records", headers=admin_headers)
        assert len(recent.json()) == 1

    async def test_purge_single_employee(
        self,
        client: AsyncClient,
        admin_headers: dict,
        second_employee: dict,
        march_punches: None,
    ) -> None:
        resp = await client.delete(
            "/api/admin/punches",
            params={"month": 3, "year": 2024, "employee_id": str(second_employee["id"])},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"deleted": 1}


class TestMonthlyReport:
    async def test_csv_download(
        self, client: AsyncClient, admin_headers: dict, march_punches: None
    ) -> None:
        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024, "format": "csv"},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["content-disposition"] == 'attachment; filename="relatorio-3-2024.csv"'

        lines = resp.content.decode("utf-8-sig").split("\r\n")
        assert lines[0].startswith('"Funcionário";"Data"')
        assert lines[1] == (
            '"Ana Silva";"05/03/2024";"08:00";"Escritório";"17:30";"Escritório";'
            '"9.50h";"Completo"'
        )
        assert lines[2] == '"Ana Silva";"Total";"-";"-";"-";"-";"9:30";"-"'
        assert lines[3].startswith('"Bruno Costa";"06/03/2024";"09:00"')
        assert lines[4] == '"Bruno Costa";"Total";"-";"-";"-";"-";"0:00";"-"'
        assert lines[5] == ""

    async def test_csv_single_employee(
        self,
        client: AsyncClient,
        admin_headers: dict,
        second_employee: dict,
        march_punches: None,
    ) -> None:
        resp = await client.post(
            "/api/admin/reports/monthly",
            json={
                "month": 3,
                "year": 2024,
                "format": "csv",
                "employee_id": str(second_employee["id"]),
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.content.decode("utf-8-sig")
        assert "Bruno Costa" in body
        assert "Ana Silva" not in body

    async def test_pdf_download(
        self, client: AsyncClient, admin_headers: dict, march_punches: None
    ) -> None:
        pytest.importorskip("reportlab")
        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    async def test_invalid_month(self, client: AsyncClient, admin_headers: dict) -> None:
        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 0, "year": 2024},
            headers=admin_headers,
        )
        assert resp.status_code == 422, resp.text

    async def test_pdf_engine_unavailable(
        self, client: AsyncClient, admin_headers: dict, monkeypatch
    ) -> None:
        def _missing(view, **kwargs):
            raise EncodingError("no reportlab", kind="pdf-engine-unavailable")

        monkeypatch.setattr(orchestrator_module, "encode_pdf", _missing)

        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024, "format": "pdf"},
            headers=admin_headers,
        )
        assert resp.status_code == 500, resp.text
        assert resp.json()["detail"] == "Gerador de PDF indisponível no servidor"

    async def test_email_without_recipient(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024, "format": "csv", "send_email": True},
            headers=admin_headers,
        )
        assert resp.status_code == 400, resp.text

    async def test_email_delivery_failure(
        self, client: AsyncClient, db: AsyncSession, admin_headers: dict, monkeypatch
    ) -> None:
        await SqlSettingsStore(db).set("report_email", "rh@cleanmyhouse.com.br")
        monkeypatch.setattr("ponto.core.config.settings.EMAIL_USER", None)

        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024, "format": "csv", "send_email": True},
            headers=admin_headers,
        )
        assert resp.status_code == 502, resp.text

    async def test_email_sent(
        self,
        client: AsyncClient,
        db: AsyncSession,
        admin_headers: dict,
        march_punches: None,
        monkeypatch,
    ) -> None:
        await SqlSettingsStore(db).set("report_email", "rh@cleanmyhouse.com.br")
        sent = []

        async def _send(self, to_address, subject, html_body, attachment):
            sent.append((to_address, subject, attachment))

        monkeypatch.setattr(SmtpEmailSender, "send", _send)

        resp = await client.post(
            "/api/admin/reports/monthly",
            json={"month": 3, "year": 2024, "format": "csv", "send_email": True},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["recipient"] == "rh@cleanmyhouse.com.br"

        (to, subject, attachment), = sent
        assert to == "rh@cleanmyhouse.com.br"
        assert "Março de 2024" in subject
        assert attachment.filename == "relatorio-3-2024.csv"
        assert b"Ana Silva" in attachment.content


class TestSettings:
    async def test_get_unset(self, client: AsyncClient, admin_headers: dict) -> None:
        resp = await client.get("/api/admin/settings/report_email", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"key": "report_email", "value": None}

    async def test_set_and_overwrite(self, client: AsyncClient, admin_headers: dict) -> None:
        for value in ("rh@cleanmyhouse.com.br", "financeiro@cleanmyhouse.com.br"):
            resp = await client.post(
                "/api/admin/settings",
                json={"key": "report_email", "value": value},
                headers=admin_headers,
            )
            assert resp.status_code == 200, resp.text

        resp = await client.get("/api/admin/settings/report_email", headers=admin_headers)
        assert resp.json()["value"] == "financeiro@cleanmyhouse.com.br"

    async def test_invalid_email_rejected(
        self, client: AsyncClient, admin_headers: dict
    ) -> None:
        resp = await client.post(
            "/api/admin/settings",
            json={"key": "report_email", "value": "not-an-email"},
            headers=admin_headers,
        )
        assert resp.status_code == 422, resp.text

    async def test_unknown_key(self, client: AsyncClient, admin_headers: dict) -> None:
        resp = await client.get("/api/admin/settings/smtp_password", headers=admin_headers)
        assert resp.status_code == 404, resp.text
