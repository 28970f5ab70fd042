from __future__ import annotations

import unicodedata
import uuid
from collections.abc import Iterable
from datetime import timedelta

from ponto.reports.domain import EmployeeSection, MonthlyReport, ShiftPair


def collation_key(name: str) -> str:
    """Accent- and case-insensitive sort key, so "Álvaro" sorts next to "Alvaro"."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _sort_key(indexed: tuple[int, ShiftPair]) -> tuple:
    index, pair = indexed
    name = pair.employee.display_name
    return (collation_key(name), name, str(pair.employee.id), pair.date, index)


def aggregate(
    shift_pairs: Iterable[ShiftPair],
    month: int,
    year: int,
    employee_id: uuid.UUID | None = None,
) -> MonthlyReport:
    """Order shift pairs by employee name, then date, keeping pairing order within a day."""
    ordered = sorted(enumerate(shift_pairs), key=_sort_key)
    return MonthlyReport(
        month=month,
        year=year,
        pairs=tuple(pair for _, pair in ordered),
        employee_id=employee_id,
    )


def total_worked_duration(shift_pairs: Iterable[ShiftPair]) -> timedelta:
    """
    Sum of worked durations; incomplete pairs count as zero.

    Anomalous (negative) durations are left out of the total.
    """
    total = timedelta(0)
    for pair in shift_pairs:
        if pair.worked_duration is None or pair.is_anomalous:
            continue
        total += pair.worked_duration
    return total


def group_by_employee(report: MonthlyReport) -> list[EmployeeSection]:
    """Split an already sorted report into consecutive per-employee sections."""
    sections: list[EmployeeSection] = []
    current: list[ShiftPair] = []

    for pair in report.pairs:
        if current and current[-1].employee.id != pair.employee.id:
            sections.append(_section(current))
            current = []
        current.append(pair)
    if current:
        sections.append(_section(current))
    return sections


def _section(pairs: list[ShiftPair]) -> EmployeeSection:
    return EmployeeSection(
        employee=pairs[0].employee,
        pairs=tuple(pairs),
        total_worked=total_worked_duration(pairs),
    )
