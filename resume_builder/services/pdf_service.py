"""PDF Service - renders a resume snapshot to PDF bytes with reportlab"""

import asyncio
from datetime import datetime
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer

from resume_builder.schemas.resume import ResumeSnapshot, SnapshotEntry
from resume_builder.utils.logger import get_logger

logger = get_logger("pdf")

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_date(month: Optional[int], year: Optional[int]) -> str:
    if month is None or year is None:
        return ""
    if 1 <= month <= 12:
        return f"{MONTHS[month - 1]} {year}"
    return str(year)


def format_date_range(
    start_month: Optional[int],
    start_year: Optional[int],
    end_month: Optional[int] = None,
    end_year: Optional[int] = None,
    is_present: Optional[bool] = False,
) -> str:
    """'Mar 2020 - Present', 'Jan 2019 - Jun 2021' or just 'Jan 2019'."""
    start = format_date(start_month, start_year)
    if is_present:
        return f"{start} - Present"
    if end_month is not None and end_year is not None:
        return f"{start} - {format_date(end_month, end_year)}"
    return start


def _entry_range(entry: SnapshotEntry) -> str:
    return format_date_range(
        entry.start_month, entry.start_year, entry.end_month, entry.end_year, entry.is_present
    )


def _ordered(entries):
    # sorted() is stable, so equal orders keep insertion order
    return sorted(entries, key=lambda e: e.order or 0)


def _text(value) -> str:
    return escape(str(value)) if value is not None else ""


class PDFService:
    """Stateless renderer. Optionally uploads through a storage adapter."""

    def __init__(self, storage=None):
        self.storage = storage
        styles = getSampleStyleSheet()
        self.name_style = ParagraphStyle(
            "Name", parent=styles["Title"], fontSize=24, leading=28, alignment=TA_CENTER
        )
        self.contact_style = ParagraphStyle(
            "Contact", parent=styles["Normal"], alignment=TA_CENTER, spaceAfter=6
        )
        self.section_style = ParagraphStyle(
            "Section", parent=styles["Heading2"], fontSize=16, spaceBefore=20, spaceAfter=6
        )
        self.body_style = ParagraphStyle("Body", parent=styles["Normal"], spaceAfter=4)
        self.bullet_style = ParagraphStyle("Bullet", parent=styles["Normal"], leftIndent=12)

    def render(self, snapshot: ResumeSnapshot) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            leftMargin=0.75 * inch,
            rightMargin=0.75 * inch,
            topMargin=0.75 * inch,
            bottomMargin=0.75 * inch,
            title="Resume",
        )

        story = []
        self._add_header(story, snapshot)
        self._add_summary(story, snapshot)
        self._add_work_experience(story, snapshot)
        self._add_education(story, snapshot)
        self._add_skills(story, snapshot)

        if not story:
            # reportlab refuses to build an empty document
            story.append(Spacer(1, 1))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        logger.debug(f"[PDF] Rendered {len(pdf_bytes)} bytes for resume {snapshot.resume_id}")
        return pdf_bytes

    async def generate_and_upload(self, snapshot: ResumeSnapshot, logical_id: str) -> dict:
        """Render, upload and describe the stored file."""
        if self.storage is None:
            raise RuntimeError("PDFService was created without a storage adapter")
        pdf_bytes = await asyncio.to_thread(self.render, snapshot)
        url = await asyncio.to_thread(self.storage.upload, pdf_bytes, logical_id)
        return {
            "pdfUrl": url,
            "fileName": f"resume_{snapshot.resume_id or logical_id.rsplit('/', 1)[-1]}.pdf",
            "fileSize": len(pdf_bytes),
            "generatedAt": datetime.utcnow().isoformat(),
        }

    def _add_header(self, story, snapshot: ResumeSnapshot):
        info = snapshot.personal_info
        if info is None:
            return
        if info.full_name:
            story.append(Paragraph(f"<b>{_text(info.full_name)}</b>", self.name_style))

        contact = [p for p in (info.email, info.phone, info.location) if p]
        if contact:
            story.append(Paragraph(" | ".join(_text(p) for p in contact), self.contact_style))

        links = [p for p in (info.website, info.linkedin, info.github) if p]
        if links:
            story.append(Paragraph(" | ".join(_text(p) for p in links), self.contact_style))

    def _add_summary(self, story, snapshot: ResumeSnapshot):
        info = snapshot.personal_info
        if info is None or not info.summary:
            return
        story.append(Paragraph("PROFESSIONAL SUMMARY", self.section_style))
        story.append(Paragraph(_text(info.summary), self.body_style))

    def _add_achievements(self, story, achievements):
        for achievement in achievements or []:
            story.append(Paragraph(f"• {_text(achievement)}", self.bullet_style))

    def _add_work_experience(self, story, snapshot: ResumeSnapshot):
        if not snapshot.work_experience:
            return
        story.append(Paragraph("PROFESSIONAL EXPERIENCE", self.section_style))

        for exp in _ordered(snapshot.work_experience):
            header = f"<b>{_text(exp.job_title)} at {_text(exp.company)}</b>"
            date_range = _entry_range(exp)
            if date_range:
                header += f" | {_text(date_range)}"
            story.append(Paragraph(header, self.body_style))

            if exp.description:
                story.append(Paragraph(_text(exp.description), self.body_style))
            self._add_achievements(story, exp.achievements)
            story.append(Spacer(1, 10))

    def _add_education(self, story, snapshot: ResumeSnapshot):
        if not snapshot.education:
            return
        story.append(Paragraph("EDUCATION", self.section_style))

        for edu in _ordered(snapshot.education):
            header = f"<b>{_text(edu.degree)}</b>"
            if edu.field_of_study:
                header += f" in {_text(edu.field_of_study)}"
            header += f" | {_text(edu.institution)}"
            date_range = _entry_range(edu)
            if date_range:
                header += f" | {_text(date_range)}"
            story.append(Paragraph(header, self.body_style))

            if edu.gpa:
                story.append(Paragraph(f"GPA: {_text(edu.gpa)}", self.body_style))
            self._add_achievements(story, edu.achievements)
            story.append(Spacer(1, 10))

    def _add_skills(self, story, snapshot: ResumeSnapshot):
        if not snapshot.skills:
            return
        story.append(Paragraph("SKILLS", self.section_style))
        story.append(Paragraph(_text(format_skills(snapshot.skills)), self.body_style))


def format_skills(skills) -> str:
    """Comma-joined 'name (level)'; the level is dropped when empty."""
    parts = []
    for skill in skills:
        parts.append(f"{skill.name} ({skill.level})" if skill.level else skill.name)
    return ", ".join(parts)
