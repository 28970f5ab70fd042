"""
Paginated PDF rendering of the monthly report.

Layout and drawing are split in two steps. ``plan_pages`` runs a small
state machine (``PageLayout``: current page, Y cursor, remaining-space
check) over the render model and produces a list of draw operations per
page, measured in millimetres from the top-left corner. ``encode_pdf``
then replays those operations on a reportlab canvas and stamps the footer
once the page count is known. Pagination can therefore be tested without
reportlab being involved at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Literal

from ponto.core.exceptions import EncodingError
from ponto.reports.render import EMPTY_REPORT_MESSAGE, ReportView, RowView

# A4 portrait, millimetres
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
LEFT_X = 20.0
RIGHT_X = 190.0
CENTER_X = PAGE_WIDTH_MM / 2

PAGE_TOP = 20.0
CONTENT_BOTTOM = 275.0
FOOTER_PAGE_Y = 285.0
FOOTER_GENERATED_Y = 290.0

TITLE_APP_Y = 20.0
TITLE_REPORT_Y = 30.0
TITLE_PERIOD_Y = 40.0
BODY_START_Y = 60.0

LINE_HEIGHT = 5.0
ROW_GROUP_GAP = 8.0
# Date, entry, exit, hours and status lines
ROW_GROUP_HEIGHT = LINE_HEIGHT * 4 + ROW_GROUP_GAP
SECTION_HEADER_HEIGHT = 15.0
SECTION_GAP = 15.0

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

NOT_AVAILABLE = "N/A"
MISSING = "-"

Align = Literal["left", "center", "right"]


@dataclass(frozen=True)
class DrawOp:
    kind: Literal["text", "rule"]
    x: float
    y: float
    text: str = ""
    font: str = FONT_REGULAR
    size: float = 10.0
    align: Align = "left"
    x2: float | None = None


@dataclass
class PageLayout:
    """Top-down cursor over fixed-size pages; content never reflows once placed."""

    top: float = PAGE_TOP
    bottom: float = CONTENT_BOTTOM
    y: float = PAGE_TOP
    pages: list[list[DrawOp]] = field(default_factory=lambda: [[]])

    @property
    def page_number(self) -> int:
        return len(self.pages)

    @property
    def remaining(self) -> float:
        return self.bottom - self.y

    def new_page(self) -> None:
        self.pages.append([])
        self.y = self.top

    def ensure_space(self, height: float) -> bool:
        """Start a new page when ``height`` does not fit; returns True if it did."""
        if self.remaining < height:
            self.new_page()
            return True
        return False

    def advance(self, height: float) -> None:
        self.y += height

    def text(
        self,
        value: str,
        *,
        x: float = LEFT_X,
        font: str = FONT_REGULAR,
        size: float = 10.0,
        align: Align = "left",
    ) -> None:
        self.pages[-1].append(
            DrawOp(kind="text", x=x, y=self.y, text=value, font=font, size=size, align=align)
        )

    def rule(self, x1: float = LEFT_X, x2: float = RIGHT_X) -> None:
        self.pages[-1].append(DrawOp(kind="rule", x=x1, y=self.y, x2=x2))


def truncate_location(value: str | None, max_chars: int) -> str:
    if not value:
        return NOT_AVAILABLE
    if len(value) <= max_chars:
        return value
    return value[: max(max_chars - 3, 0)] + "..."


def _row_lines(row: RowView, max_location_chars: int) -> list[str]:
    entry_loc = truncate_location(row.entry_location, max_location_chars)
    exit_loc = truncate_location(row.exit_location, max_location_chars)
    return [
        f"Data: {row.date}",
        f"Entrada: {row.entry_time or MISSING} - {entry_loc}",
        f"Saída: {row.exit_time or MISSING} - {exit_loc}",
        f"Horas trabalhadas: {row.worked_hours or MISSING}",
        f"Status: {row.status}",
    ]


def plan_pages(view: ReportView, *, max_location_chars: int = 50) -> list[list[DrawOp]]:
    layout = PageLayout()

    layout.y = TITLE_APP_Y
    layout.text(view.app_name, x=CENTER_X, font=FONT_REGULAR, size=18, align="center")
    layout.y = TITLE_REPORT_Y
    layout.text(view.title, x=CENTER_X, size=14, align="center")
    layout.y = TITLE_PERIOD_Y
    layout.text(view.period_label, x=CENTER_X, size=12, align="center")
    layout.y = BODY_START_Y

    if view.is_empty:
        layout.text(EMPTY_REPORT_MESSAGE, x=CENTER_X, size=12, align="center")
        return layout.pages

    for section in view.sections:
        # Keep the header together with at least its first shift
        layout.ensure_space(SECTION_HEADER_HEIGHT + ROW_GROUP_HEIGHT)
        layout.text(f"Funcionário: {section.employee_name}", font=FONT_BOLD, size=14)
        layout.advance(10)
        layout.rule()
        layout.advance(5)

        for row in section.rows:
            layout.ensure_space(ROW_GROUP_HEIGHT)
            lines = _row_lines(row, max_location_chars)
            for line in lines[:-1]:
                layout.text(line)
                layout.advance(LINE_HEIGHT)
            layout.text(lines[-1])
            layout.advance(ROW_GROUP_GAP)

        layout.ensure_space(LINE_HEIGHT)
        layout.text(
            f"Total de horas no mês: {section.total_hours}h",
            font=FONT_BOLD,
            size=10,
        )
        layout.advance(SECTION_GAP)

    return layout.pages


def footer_lines(view: ReportView, page_number: int, page_count: int) -> list[DrawOp]:
    generated = view.generated_at.strftime("%d/%m/%Y às %H:%M:%S")
    return [
        DrawOp(
            kind="text",
            x=CENTER_X,
            y=FOOTER_GENERATED_Y,
            text=f"Relatório gerado em {generated}",
            size=8,
            align="center",
        ),
        DrawOp(
            kind="text",
            x=RIGHT_X,
            y=FOOTER_PAGE_Y,
            text=f"Página {page_number} de {page_count}",
            size=8,
            align="right",
        ),
    ]


def encode_pdf(view: ReportView, *, max_location_chars: int = 50) -> bytes:
    try:
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.units import mm
        from reportlab.pdfgen import canvas
    except ImportError as exc:
        raise EncodingError(
            "PDF engine unavailable: reportlab is not installed",
            kind="pdf-engine-unavailable",
        ) from exc

    pages = plan_pages(view, max_location_chars=max_location_chars)
    page_count = len(pages)
    _, page_height = A4

    def _draw(canv: canvas.Canvas, op: DrawOp) -> None:
        y = page_height - op.y * mm
        if op.kind == "rule":
            canv.setLineWidth(0.5)
            canv.line(op.x * mm, y, (op.x2 or op.x) * mm, y)
            return
        canv.setFont(op.font, op.size)
        if op.align == "center":
            canv.drawCentredString(op.x * mm, y, op.text)
        elif op.align == "right":
            canv.drawRightString(op.x * mm, y, op.text)
        else:
            canv.drawString(op.x * mm, y, op.text)

    buffer = BytesIO()
    try:
        canv = canvas.Canvas(buffer, pagesize=A4)
        canv.setTitle(f"{view.title} - {view.period_label}")
        canv.setAuthor(view.app_name)
        for number, ops in enumerate(pages, start=1):
            for op in ops:
                _draw(canv, op)
            for op in footer_lines(view, number, page_count):
                _draw(canv, op)
            canv.showPage()
        canv.save()
    except Exception as exc:
        raise EncodingError(f"PDF layout failed: {exc}") from exc
    return buffer.getvalue()
