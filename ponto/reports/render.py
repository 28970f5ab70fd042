"""
Canonical render model shared by the CSV and PDF encoders.

All business formatting (dates, times, hours, status labels, monthly
totals) happens here exactly once. The encoders only lay the strings out,
so the two outputs cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from ponto.reports.aggregator import group_by_employee
from ponto.reports.domain import MonthlyReport, PunchEvent, ShiftPair, ShiftStatus

REPORT_TITLE = "Relatório Mensal de Ponto"
EMPTY_REPORT_MESSAGE = "Nenhum registro encontrado para o período selecionado."

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

STATUS_LABELS: dict[ShiftStatus, str] = {
    ShiftStatus.COMPLETE: "Completo",
    ShiftStatus.ENTRY_WITHOUT_EXIT: "Incompleto (sem saída)",
    ShiftStatus.EXIT_WITHOUT_ENTRY: "Incompleto (sem entrada)",
}


@dataclass(frozen=True)
class RowView:
    employee_name: str
    date: str
    entry_time: str | None
    entry_location: str | None
    exit_time: str | None
    exit_location: str | None
    worked_hours: str | None
    status: str
    anomalous: bool = False


@dataclass(frozen=True)
class SectionView:
    employee_name: str
    rows: tuple[RowView, ...]
    total_hours: str


@dataclass(frozen=True)
class ReportView:
    app_name: str
    title: str
    period_label: str
    generated_at: datetime
    sections: tuple[SectionView, ...]

    @property
    def rows(self) -> list[RowView]:
        return [row for section in self.sections for row in section.rows]

    @property
    def is_empty(self) -> bool:
        return not self.sections


def period_label(month: int, year: int) -> str:
    return f"{MONTH_NAMES[month - 1]} de {year}"


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_time(event: PunchEvent | None) -> str | None:
    if event is None:
        return None
    ts = event.timestamp
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%H:%M")


def format_hours(duration: timedelta | None) -> str | None:
    """Decimal hours with two places, e.g. 9h30m -> "9.50h"."""
    if duration is None:
        return None
    return f"{duration.total_seconds() / 3600:.2f}h"


def format_total(duration: timedelta) -> str:
    """Monthly total as H:MM, rounded to the nearest minute."""
    total_minutes = round(duration.total_seconds() / 60)
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours}:{minutes:02d}"


def _location(event: PunchEvent | None) -> str | None:
    if event is None or not event.location or not event.location.strip():
        return None
    return event.location.strip()


def build_row(pair: ShiftPair) -> RowView:
    return RowView(
        employee_name=pair.employee.display_name,
        date=format_date(pair.date),
        entry_time=format_time(pair.entry),
        entry_location=_location(pair.entry),
        exit_time=format_time(pair.exit),
        exit_location=_location(pair.exit),
        worked_hours=format_hours(pair.worked_duration),
        status=STATUS_LABELS[pair.status],
        anomalous=pair.is_anomalous,
    )


def build_render_model(
    report: MonthlyReport,
    *,
    app_name: str,
    generated_at: datetime | None = None,
) -> ReportView:
    sections = tuple(
        SectionView(
            employee_name=section.employee.display_name,
            rows=tuple(build_row(pair) for pair in section.pairs),
            total_hours=format_total(section.total_worked),
        )
        for section in group_by_employee(report)
    )
    return ReportView(
        app_name=app_name,
        title=REPORT_TITLE,
        period_label=period_label(report.month, report.year),
        generated_at=generated_at or datetime.now(timezone.utc),
        sections=sections,
    )
