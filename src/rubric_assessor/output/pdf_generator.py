"""
Printable PDF of a saved assessment.

Uses reportlab for PDF generation. The document carries the assessment
header (student, date, task, rubric), the per-criterion table with the
selected levels, the score totals and the narrative feedback.
"""

from __future__ import annotations

from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..assessment.models import SavedAssessment
from ..utils.files import ensure_dir, safe_filename
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _get_styles() -> dict[str, ParagraphStyle]:
    """Get custom paragraph styles for the PDF."""
    styles = getSampleStyleSheet()

    return {
        "Title": ParagraphStyle(
            "CustomTitle",
            parent=styles["Heading1"],
            fontSize=16,
            spaceAfter=12,
            textColor=colors.HexColor("#1e293b"),
        ),
        "Heading2": ParagraphStyle(
            "CustomHeading2",
            parent=styles["Heading2"],
            fontSize=13,
            spaceBefore=12,
            spaceAfter=6,
            textColor=colors.HexColor("#4338ca"),
        ),
        "Normal": ParagraphStyle(
            "CustomNormal",
            parent=styles["Normal"],
            fontSize=10,
            leading=14,
            spaceAfter=6,
        ),
        "Small": ParagraphStyle(
            "CustomSmall",
            parent=styles["Normal"],
            fontSize=8,
            leading=10,
            textColor=colors.HexColor("#475569"),
        ),
    }


def _text(value: str) -> str:
    """Escape text for a reportlab Paragraph, keeping line breaks."""
    return escape(value).replace("\n", "<br/>")


def default_pdf_name(record: SavedAssessment) -> str:
    return f"{safe_filename(record.student_name)}_{safe_filename(record.date)}.pdf"


def _build_header_section(record: SavedAssessment, styles: dict[str, ParagraphStyle]) -> list:
    elements = [Paragraph(_text(record.rubric.title or "Assessment"), styles["Title"])]

    rows = [
        ("Student", record.student_name),
        ("Date", record.date),
        ("Task", record.task or "No Task"),
    ]
    for label, value in rows:
        elements.append(Paragraph(f"<b>{label}:</b> {_text(value)}", styles["Normal"]))

    elements.append(Spacer(1, 0.15 * inch))
    return elements


def _build_scores_section(record: SavedAssessment, styles: dict[str, ParagraphStyle]) -> list:
    elements = [Paragraph("Rubric Scores", styles["Heading2"])]

    if not record.rubric.criteria:
        elements.append(Paragraph("This rubric has no criteria.", styles["Normal"]))
        return elements

    table_data = [[
        Paragraph("<b>Criterion</b>", styles["Small"]),
        Paragraph("<b>Score</b>", styles["Small"]),
        Paragraph("<b>Selected level</b>", styles["Small"]),
    ]]

    for criterion in record.rubric.criteria:
        score = record.scores.get(criterion.id) or 0
        level = criterion.get_level_by_score(score) if score else None
        if level is not None:
            level_text = f"<b>{_text(level.label)}</b><br/>{_text(level.description)}"
        else:
            level_text = "Not scored"
        table_data.append([
            Paragraph(_text(criterion.label), styles["Small"]),
            Paragraph(str(score) if score else "-", styles["Small"]),
            Paragraph(level_text, styles["Small"]),
        ])

    table_data.append([
        Paragraph("<b>TOTAL</b>", styles["Small"]),
        Paragraph(f"<b>{record.total_score}/{record.max_score}</b>", styles["Small"]),
        Paragraph(f"Average: {escape(record.average_score)}", styles["Small"]),
    ])

    table = Table(table_data, colWidths=[1.8 * inch, 0.7 * inch, 4.1 * inch])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e2e8f0")),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#f1f5f9")),
        ("ALIGN", (1, 0), (1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))

    elements.append(table)
    elements.append(Spacer(1, 0.2 * inch))
    return elements


def _build_text_section(heading: str, body: str, styles: dict[str, ParagraphStyle]) -> list:
    if not body.strip():
        return []
    elements = [Paragraph(heading, styles["Heading2"])]
    for para in body.strip().split("\n\n"):
        if para.strip():
            elements.append(Paragraph(_text(para.strip()), styles["Normal"]))
    return elements


def generate_assessment_pdf(record: SavedAssessment, output_path: Path) -> Path:
    """Write a printable PDF for one saved assessment.

    Args:
        record: The saved assessment
        output_path: Target file; a directory gets a name built from student and date

    Returns:
        Path to the generated PDF file
    """
    if output_path.is_dir():
        output_path = output_path / default_pdf_name(record)
    ensure_dir(output_path.parent)

    logger.info(f"Generating PDF for assessment {record.id}: {output_path}")
    styles = _get_styles()

    elements = []
    elements.extend(_build_header_section(record, styles))
    elements.extend(_build_scores_section(record, styles))
    elements.extend(_build_text_section("Teacher Feedback", record.feedback, styles))
    elements.extend(_build_text_section("Strengths", record.strengths, styles))
    elements.extend(_build_text_section("Areas for Improvement", record.improvements, styles))
    if record.student_reflection:
        elements.extend(_build_text_section("Student Self-Assessment", record.student_reflection, styles))

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=letter,
        rightMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"{record.rubric.title} - {record.student_name}",
    )
    doc.build(elements)

    logger.info(f"PDF generated: {output_path}")
    return output_path
