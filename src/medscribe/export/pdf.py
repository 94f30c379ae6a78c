"""
PDF Export

Paginated A4 prescription document built with reportlab. The branded
header band and footer are drawn on every page.
"""

from io import BytesIO
from pathlib import Path
import html
import logging

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from medscribe.export.sections import Branding, Section, build_sections, format_timestamp
from medscribe.report.report_types import PatientSnapshot, Report

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": letter}

HEADER_HEIGHT = 56
FOOTER_HEIGHT = 36
MARGIN = 36


def _esc(value: str) -> str:
    # Paragraph text is parsed as mini-markup
    return html.escape(value or "", quote=False)


def _styles() -> dict[str, ParagraphStyle]:
    styles = getSampleStyleSheet()
    return {
        "section": ParagraphStyle(
            "Section",
            parent=styles["Heading2"],
            fontSize=12,
            spaceBefore=10,
            spaceAfter=4,
            textColor=colors.HexColor("#0F766E"),
        ),
        "body": ParagraphStyle(
            "Body",
            parent=styles["Normal"],
            fontSize=10,
            leading=14,
            alignment=TA_LEFT,
        ),
        "meta": ParagraphStyle(
            "Meta",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.grey,
        ),
    }


def _section_flowables(section: Section, styles: dict[str, ParagraphStyle]) -> list:
    body = styles["body"]
    story = [Paragraph(_esc(section.title), styles["section"])]

    if section.kind == "fields" and section.fields:
        rows = [
            [Paragraph(f"<b>{_esc(label)}</b>", body), Paragraph(_esc(value), body)]
            for label, value in section.fields
        ]
        table = Table(rows, colWidths=[120, 380], hAlign="LEFT")
        table.setStyle(
            TableStyle(
                [
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                    ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        story.append(table)
    elif section.kind == "list" and section.items:
        story.append(
            ListFlowable(
                [ListItem(Paragraph(_esc(item), body)) for item in section.items],
                bulletType="bullet",
            )
        )
    elif section.kind == "medications" and section.medications:
        items = []
        for med in section.medications:
            text = (
                f"<b>{_esc(med.name) or 'Unnamed medication'}</b><br/>"
                f"Dosage: {_esc(med.dosage) or '-'} | Frequency: {_esc(med.frequency) or '-'}"
                f" | Duration: {_esc(med.duration) or '-'}<br/>"
                f"Instructions: {_esc(med.instructions) or '-'}"
            )
            items.append(ListItem(Paragraph(text, body)))
        story.append(ListFlowable(items, bulletType="1"))
    else:
        story.append(Paragraph(_esc(section.text) or "-", body))

    return story


def _page_decorator(report: Report, branding: Branding):
    primary = colors.HexColor(branding.primary_color)

    def draw(canvas, doc):
        width, height = doc.pagesize
        canvas.saveState()

        canvas.setFillColor(primary)
        canvas.rect(0, height - HEADER_HEIGHT, width, HEADER_HEIGHT, stroke=0, fill=1)
        canvas.setFillColor(colors.white)
        canvas.setFont("Helvetica-Bold", 15)
        canvas.drawString(MARGIN, height - 26, branding.title)
        canvas.setFont("Helvetica", 9)
        canvas.drawString(MARGIN, height - 42, branding.brand_name)
        canvas.drawRightString(
            width - MARGIN, height - 42, f"Generated {format_timestamp(report.generated_at)}"
        )

        canvas.setStrokeColor(primary)
        canvas.line(MARGIN, FOOTER_HEIGHT, width - MARGIN, FOOTER_HEIGHT)
        canvas.setFillColor(colors.grey)
        canvas.setFont("Helvetica-Oblique", 8)
        footer = "  |  ".join([branding.disclaimer, *branding.contact_lines])
        canvas.drawString(MARGIN, FOOTER_HEIGHT - 12, footer)
        canvas.drawRightString(width - MARGIN, FOOTER_HEIGHT - 12, f"Page {doc.page}")

        canvas.restoreState()

    return draw


def render_pdf(
    report: Report,
    snapshot: PatientSnapshot,
    output: str | Path | None = None,
    branding: Branding | None = None,
    page_size: str = "A4",
) -> bytes:
    """Render the report as PDF.

    Returns the document bytes and, when ``output`` is given, also writes
    them there. Output is byte-stable for identical inputs.
    """
    branding = branding or Branding()
    styles = _styles()
    styles["section"].textColor = colors.HexColor(branding.primary_color)

    story = [
        Paragraph(f"Report ID: {_esc(report.id)}", styles["meta"]),
        Spacer(1, 6),
    ]
    for section in build_sections(report, snapshot):
        story.extend(_section_flowables(section, styles))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=PAGE_SIZES.get(page_size.upper(), A4),
        rightMargin=MARGIN,
        leftMargin=MARGIN,
        topMargin=HEADER_HEIGHT + 18,
        bottomMargin=FOOTER_HEIGHT + 18,
        title=f"{branding.title.title()} {report.id}",
        author=branding.brand_name,
        invariant=1,
    )
    decorate = _page_decorator(report, branding)
    doc.build(story, onFirstPage=decorate, onLaterPages=decorate)

    data = buffer.getvalue()
    if output is not None:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("[Export] Wrote PDF: %s (%d bytes)", path, len(data))
    return data
