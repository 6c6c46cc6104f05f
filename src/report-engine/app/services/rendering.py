"""Document rendering.

Turns a completed report into a downloadable document. The PDF layout is a
single pass over the payload in fixed section order: header, metadata,
executive summary, key findings, insights, recommendations, data summary,
forecast. Output is a pure function of the report, so rendering the same
report twice yields identical bytes.
"""

from __future__ import annotations

from io import BytesIO

from pydantic import BaseModel
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from shared.models import Report, ReportFormat, ReportPayload
from shared.observability import get_logger

logger = get_logger(__name__)

PLATFORM_NAME = "TourEase Analytics"
HEADER_TEXT = "TourEase Analytics Report"

MARGIN = 50
LINE_HEIGHT = 12
CHAR_WIDTH = 6
DEFAULT_COLUMN_WIDTH = 500
LIST_INDENT = 20
FOOTER_HEIGHT = 40


class RenderError(Exception):
    """Raised when the document cannot be written to its sink."""

    pass


class RenderedDocument(BaseModel):
    """Bytes of a rendered report with the metadata needed to serve it."""

    content: bytes
    media_type: str
    filename: str


def wrap_text(text: str, max_width: float, char_width: float = CHAR_WIDTH) -> list[str]:
    """Greedy word wrap using an approximate fixed character width.

    Words are accumulated while the line stays under ``max_width``; a single
    word wider than the budget occupies a line of its own.
    """
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) * char_width < max_width or not current:
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def heading_lines(text: str, size: int, max_width: float) -> list[str]:
    """Wrap a heading, scaling the approximate character width with the font size."""
    return wrap_text(text, max_width, char_width=CHAR_WIDTH * size / 10) or [text]


class _PdfWriter:
    """Cursor over a reportlab canvas that breaks pages and draws footers."""

    def __init__(self, buffer: BytesIO, report: Report, column_width: float):
        self.report = report
        self.column_width = column_width
        self.width, self.height = A4
        # invariant=1 fixes the creation date and document id inside the file
        self.pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        self.pdf.setTitle(report.title)
        self.pdf.setAuthor(PLATFORM_NAME)
        self.page = 1
        self.y = self.height - MARGIN

    def ensure_space(self, needed: float) -> None:
        if self.y - needed < MARGIN + FOOTER_HEIGHT:
            self.footer()
            self.pdf.showPage()
            self.page += 1
            self.y = self.height - MARGIN

    def footer(self) -> None:
        self.pdf.setFont("Helvetica", 8)
        self.pdf.drawString(
            MARGIN,
            MARGIN - 20,
            f"Generated by {PLATFORM_NAME} Platform | Report ID: {self.report.id}",
        )
        self.pdf.drawRightString(self.width - MARGIN, MARGIN - 20, f"Page {self.page}")

    def line(self, text: str, font: str = "Helvetica", size: int = 10, indent: float = 0) -> None:
        self.ensure_space(LINE_HEIGHT)
        self.pdf.setFont(font, size)
        self.pdf.drawString(MARGIN + indent, self.y, text)
        self.y -= LINE_HEIGHT

    def heading(self, text: str, size: int = 14) -> None:
        lines = heading_lines(text, size, self.column_width)
        self.ensure_space(size * len(lines) + LINE_HEIGHT * 2)
        self.y -= LINE_HEIGHT / 2
        self.pdf.setFont("Helvetica-Bold", size)
        for wrapped in lines:
            self.pdf.drawString(MARGIN, self.y, wrapped)
            self.y -= size + 2
        self.y -= LINE_HEIGHT / 2 - 2

    def paragraph(self, text: str, indent: float = 0) -> None:
        for wrapped in wrap_text(text, self.column_width - indent):
            self.line(wrapped, indent=indent)
        self.y -= LINE_HEIGHT / 2

    def items(self, entries: list[str], numbered: bool) -> None:
        for index, entry in enumerate(entries, start=1):
            marker = f"{index}." if numbered else "-"
            wrapped = wrap_text(entry, self.column_width - LIST_INDENT) or [""]
            self.line(f"{marker} {wrapped[0]}")
            for continuation in wrapped[1:]:
                self.line(continuation, indent=LIST_INDENT)
        self.y -= LINE_HEIGHT / 2

    def finish(self) -> None:
        self.footer()
        self.pdf.save()


def _metadata_lines(report: Report) -> list[str]:
    payload = report.payload
    generated = payload.metadata.generated_at if payload else report.created_at
    return [
        f"Report Type: {report.report_type}",
        f"Date Range: {report.date_range}",
        f"Scope: {'Attraction ' + str(report.attraction_id) if report.attraction_id else 'All attractions'}",
        f"Forecast Period: {report.period} ({report.forecast_horizon} months)",
        f"Generated: {generated.isoformat()}",
        f"Source: {'AI analysis' if report.provenance == 'ai' else 'Statistical model'}",
    ]


def _data_summary_lines(payload: ReportPayload) -> list[str]:
    data = payload.data
    lines = [
        f"Total Visits: {data.total_visits:,}",
        f"Total Revenue: ${data.total_revenue:,.2f}",
        f"Unique Visitors: {data.unique_visitors:,}",
        f"Average Rating: {data.avg_rating:.2f}",
    ]
    for attraction in data.top_attractions[:5]:
        lines.append(
            f"  {attraction.name}: {attraction.visits:,} visits, "
            f"${attraction.revenue:,.2f}, rating {attraction.rating:.1f}"
        )
    return lines


def _forecast_lines(payload: ReportPayload) -> list[str]:
    lines = []
    metrics = payload.forecast_metrics
    if metrics is not None:
        lines.extend(
            [
                f"Next Month Visitors: {metrics.next_month_visitors:,.0f}",
                f"Next Month Revenue: ${metrics.next_month_revenue:,.2f}",
                f"Quarterly Revenue: ${metrics.quarterly_revenue:,.2f}",
                f"Seasonal Index: {metrics.seasonal_index:.2f}",
                f"Growth Rate: {metrics.growth_rate:.1f}%",
                f"Accuracy Score: {metrics.accuracy_score:.1f}%",
            ]
        )
    for label, scenarios in (
        ("Revenue", payload.revenue_scenarios),
        ("Visitors", payload.visitor_scenarios),
    ):
        for scenario in scenarios:
            lines.append(
                f"{label} {scenario.month}: {scenario.pessimistic:,.0f} / "
                f"{scenario.realistic:,.0f} / {scenario.optimistic:,.0f} "
                f"({scenario.confidence:.0f}% confidence)"
            )
    return lines


def render_pdf(report: Report, column_width: float = DEFAULT_COLUMN_WIDTH) -> bytes:
    """Render a completed report as a paginated PDF.

    Raises:
        RenderError: The document could not be written.
    """
    if report.payload is None:
        raise ValueError(f"Report {report.id} has no payload to render")

    payload = report.payload
    buffer = BytesIO()
    writer = _PdfWriter(buffer, report, column_width)

    writer.line(HEADER_TEXT, font="Helvetica-Bold", size=18)
    writer.y -= LINE_HEIGHT
    writer.heading(report.title, size=14)
    for entry in _metadata_lines(report):
        writer.line(entry, size=9)

    writer.heading("Executive Summary")
    writer.paragraph(payload.summary)

    writer.heading("Key Findings")
    writer.items(payload.key_findings, numbered=True)

    writer.heading("AI Insights")
    writer.items(payload.insights, numbered=False)

    writer.heading("Recommendations")
    writer.items(payload.recommendations, numbered=True)

    writer.heading("Data Summary")
    for entry in _data_summary_lines(payload):
        writer.line(entry)

    forecast = _forecast_lines(payload)
    if forecast:
        writer.heading("Forecast")
        for entry in forecast:
            writer.line(entry)

    try:
        writer.finish()
    except OSError as e:
        raise RenderError(f"Failed to write PDF for report {report.id}: {e}") from e

    logger.debug("PDF rendered", report_id=str(report.id), pages=writer.page)
    return buffer.getvalue()


def render_markdown(report: Report) -> str:
    """Render a completed report as Markdown, in the same section order as the PDF."""
    if report.payload is None:
        raise ValueError(f"Report {report.id} has no payload to render")

    payload = report.payload
    lines = [
        f"# {report.title}",
        "",
        *[f"**{key}:** {value}" for key, value in (
            entry.split(": ", 1) for entry in _metadata_lines(report)
        )],
        "",
        "## Executive Summary",
        payload.summary,
        "",
        "## Key Findings",
        *[f"{index}. {finding}" for index, finding in enumerate(payload.key_findings, start=1)],
        "",
        "## AI Insights",
        *[f"- {insight}" for insight in payload.insights],
        "",
        "## Recommendations",
        *[f"{index}. {rec}" for index, rec in enumerate(payload.recommendations, start=1)],
        "",
        "## Data Summary",
        *[f"- {entry.strip()}" for entry in _data_summary_lines(payload)],
    ]

    forecast = _forecast_lines(payload)
    if forecast:
        lines.extend(["", "## Forecast", *[f"- {entry}" for entry in forecast]])

    lines.extend(["", f"_Generated by {PLATFORM_NAME} Platform | Report ID: {report.id}_"])
    return "\n".join(lines)


def render_json(report: Report) -> str:
    """Report record and payload as JSON.

    The download counter is left out so repeated downloads return identical bytes.
    """
    return report.model_dump_json(indent=2, exclude={"download_count"})


def render(
    report: Report,
    fmt: ReportFormat | str,
    column_width: float = DEFAULT_COLUMN_WIDTH,
) -> RenderedDocument:
    """Render a report in the requested download format."""
    fmt = ReportFormat(fmt)
    stem = f"report-{report.id}"

    if fmt == ReportFormat.PDF:
        return RenderedDocument(
            content=render_pdf(report, column_width),
            media_type="application/pdf",
            filename=f"{stem}.pdf",
        )
    if fmt == ReportFormat.MARKDOWN:
        return RenderedDocument(
            content=render_markdown(report).encode("utf-8"),
            media_type="text/markdown",
            filename=f"{stem}.md",
        )
    return RenderedDocument(
        content=render_json(report).encode("utf-8"),
        media_type="application/json",
        filename=f"{stem}.json",
    )
