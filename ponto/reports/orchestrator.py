"""
Monthly report orchestration: fetch → reconcile → aggregate → encode.

The orchestrator receives its collaborators explicitly (record store,
settings store, e-mail sender) and keeps no state between calls; two
concurrent requests for the same month simply compute the report twice.
"""

from __future__ import annotations

import calendar
import enum
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from ponto.core.exceptions import (
    EncodingError,
    MissingRecipientError,
    ReportGenerationError,
)
from ponto.reports.aggregator import aggregate
from ponto.reports.csv_encoder import encode_csv
from ponto.reports.domain import Employee, PunchEvent
from ponto.reports.pdf_encoder import encode_pdf
from ponto.reports.reconciler import reconcile
from ponto.reports.render import ReportView, build_render_model, period_label
from ponto.services.email import EmailAttachment, build_report_email

REPORT_EMAIL_SETTING = "report_email"


class ReportFormat(str, enum.Enum):
    CSV = "csv"
    PDF = "pdf"

    @property
    def media_type(self) -> str:
        return "text/csv" if self is ReportFormat.CSV else "application/pdf"


@dataclass(frozen=True)
class ReportFile:
    content: bytes
    filename: str
    media_type: str
    format: ReportFormat
    row_count: int


class RecordStore(Protocol):
    async def query_punch_events(
        self, employee_id: uuid.UUID | None, start: datetime, end: datetime
    ) -> Sequence[PunchEvent]: ...

    async def get_employee(self, employee_id: uuid.UUID) -> Employee | None: ...

    async def get_employees(
        self, employee_ids: Iterable[uuid.UUID]
    ) -> Mapping[uuid.UUID, Employee]: ...


class SettingsStore(Protocol):
    async def get(self, key: str) -> str | None: ...


class EmailSender(Protocol):
    async def send(
        self, to_address: str, subject: str, html_body: str, attachment: EmailAttachment
    ) -> None: ...


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    """UTC [first day 00:00:00, last day 23:59:59] for the given month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    _, last_day = calendar.monthrange(year, month)
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return start, end


def report_filename(month: int, year: int, fmt: ReportFormat) -> str:
    return f"relatorio-{month}-{year}.{fmt.value}"


def encode_report(view: ReportView, fmt: ReportFormat, *, max_location_chars: int = 50) -> bytes:
    """Run the selected serializer, wrapping any failure as ReportGenerationError."""
    try:
        if fmt is ReportFormat.CSV:
            return encode_csv(view)
        return encode_pdf(view, max_location_chars=max_location_chars)
    except EncodingError:
        raise
    except Exception as exc:
        raise ReportGenerationError(f"Report encoding failed: {exc}") from exc


class ReportOrchestrator:
    def __init__(
        self,
        record_store: RecordStore,
        *,
        app_name: str,
        settings_store: SettingsStore | None = None,
        email_sender: EmailSender | None = None,
        max_location_chars: int = 50,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._records = record_store
        self._settings = settings_store
        self._email = email_sender
        self._app_name = app_name
        self._max_location_chars = max_location_chars
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def build_view(
        self, month: int, year: int, employee_id: uuid.UUID | None = None
    ) -> ReportView:
        start, end = month_bounds(month, year)

        events = await self._records.query_punch_events(employee_id, start, end)
        employee_ids = {event.employee_id for event in events}
        directory = await self._records.get_employees(employee_ids) if employee_ids else {}

        pairs = reconcile(events, directory)
        report = aggregate(pairs, month, year, employee_id)
        return build_render_model(report, app_name=self._app_name, generated_at=self._clock())

    async def generate_monthly_report(
        self,
        month: int,
        year: int,
        employee_id: uuid.UUID | None = None,
        fmt: ReportFormat | str = ReportFormat.PDF,
    ) -> ReportFile:
        fmt = ReportFormat(fmt)
        view = await self.build_view(month, year, employee_id)
        content = encode_report(view, fmt, max_location_chars=self._max_location_chars)
        return ReportFile(
            content=content,
            filename=report_filename(month, year, fmt),
            media_type=fmt.media_type,
            format=fmt,
            row_count=len(view.rows),
        )

    async def send_monthly_report(
        self,
        month: int,
        year: int,
        employee_id: uuid.UUID | None = None,
        fmt: ReportFormat | str = ReportFormat.PDF,
    ) -> str:
        """Build the report and e-mail it to the configured recipient; returns the address."""
        if self._settings is None or self._email is None:
            raise RuntimeError("send_monthly_report needs a settings store and an e-mail sender")

        recipient = await self._settings.get(REPORT_EMAIL_SETTING)
        if not recipient or not recipient.strip():
            raise MissingRecipientError("Report recipient e-mail is not configured")

        report = await self.generate_monthly_report(month, year, employee_id, fmt)
        subject, html_body = build_report_email(
            period=period_label(month, year),
            fmt=report.format.value,
            app_name=self._app_name,
            generated_at=self._clock(),
        )
        await self._email.send(
            recipient.strip(),
            subject,
            html_body,
            EmailAttachment(
                filename=report.filename,
                content=report.content,
                mime_type=report.media_type,
            ),
        )
        return recipient.strip()
