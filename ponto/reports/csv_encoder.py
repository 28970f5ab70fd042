from __future__ import annotations

import csv
import io

from ponto.core.exceptions import EncodingError
from ponto.reports.render import ReportView, RowView, SectionView

CSV_HEADERS = (
    "Funcionário",
    "Data",
    "Horário de Entrada",
    "Local de Entrada",
    "Horário de Saída",
    "Local de Saída",
    "Horas Trabalhadas",
    "Status",
)
CSV_DELIMITER = ";"
MISSING_PLACEHOLDER = "-"
TOTAL_LABEL = "Total"


def _cell(value: str | None) -> str:
    if value is None or not value.strip():
        return MISSING_PLACEHOLDER
    return value


def row_values(row: RowView) -> list[str]:
    return [
        _cell(row.employee_name),
        _cell(row.date),
        _cell(row.entry_time),
        _cell(row.entry_location),
        _cell(row.exit_time),
        _cell(row.exit_location),
        _cell(row.worked_hours),
        _cell(row.status),
    ]

def total_values(section: SectionView) -> list[str]:
    """Per-employee monthly total, in the hours column, same value as the PDF total line."""
    values = [MISSING_PLACEHOLDER] * len(CSV_HEADERS)
    values[0] = _cell(section.employee_name)
    values[1] = TOTAL_LABEL
    values[6] = _cell(section.total_hours)
    return values


def encode_csv(view: ReportView) -> bytes:
    """
    Serialize the report as semicolon-delimited text for spreadsheet import.

    Each employee's shift rows are followed by a total row. Every field is
    quoted, embedded quotes are doubled, lines end with CRLF and the payload
    carries a UTF-8 BOM so Excel picks the right encoding.
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(
        buffer,
        delimiter=CSV_DELIMITER,
        quotechar='"',
        quoting=csv.QUOTE_ALL,
        doublequote=True,
        lineterminator="\r\n",
    )
    try:
        writer.writerow(CSV_HEADERS)
        for section in view.sections:
            for row in section.rows:
                writer.writerow(row_values(row))
            writer.writerow(total_values(section))
        return buffer.getvalue().encode("utf-8-sig")
    except (csv.Error, UnicodeError) as exc:
        raise EncodingError(f"CSV serialization failed: {exc}") from exc
