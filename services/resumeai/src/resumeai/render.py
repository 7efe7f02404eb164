from __future__ import annotations

import io
from pathlib import Path
from xml.sax.saxutils import escape

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from resumeai.errors import RenderError
from resumeai.models import ResumeDocument

TEMPLATE_DIR = Path(__file__).parent / "templates"


class ResumeRenderer:
    """Turns a resume document into display HTML (Jinja2) and a printable PDF (ReportLab)."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR, template_name: str = "resume.html") -> None:
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.template_name = template_name

    def render_html(self, document: ResumeDocument) -> str:
        try:
            return self.env.get_template(self.template_name).render(r=document)
        except TemplateError as exc:
            raise RenderError(f"HTML rendering failed: {exc}") from exc
        except Exception as exc:
            raise RenderError(f"HTML rendering failed: {exc!r}") from exc

    def render_pdf(self, document: ResumeDocument) -> bytes:
        buffer = io.BytesIO()
        pdf = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=0.75 * inch,
            rightMargin=0.75 * inch,
            topMargin=0.7 * inch,
            bottomMargin=0.7 * inch,
            title=document.full_name or "Resume",
        )
        try:
            pdf.build(self._flowables(document))
        except Exception as exc:
            raise RenderError(f"PDF rendering failed: {exc}") from exc
        return buffer.getvalue()

    def _flowables(self, document: ResumeDocument) -> list[Flowable]:
        styles = getSampleStyleSheet()
        heading = styles["Heading2"]
        body = styles["BodyText"]

        def para(text: str, style=body) -> Paragraph:
            return Paragraph(escape(text), style)

        story: list[Flowable] = [para(document.full_name or "Resume", styles["Title"])]
        if document.job_title:
            story.append(para(document.job_title, styles["Heading3"]))
        contact = " | ".join(
            value for value in (document.email, document.phone, document.location) if value
        )
        if contact:
            story.append(para(contact))
        story.append(Spacer(1, 0.15 * inch))

        if document.summary:
            story.extend([para("Summary", heading), para(document.summary)])
        if document.experience:
            story.append(para("Experience", heading))
            for item in document.experience:
                title = " - ".join(value for value in (item.company, item.duration) if value)
                story.append(Paragraph(f"<b>{escape(title)}</b>", body))
                if item.description:
                    story.append(para(item.description))
        if document.projects:
            story.append(para("Projects", heading))
            for item in document.projects:
                story.append(Paragraph(f"<b>{escape(item.name)}</b>", body))
                if item.description:
                    story.append(para(item.description))
                if item.link:
                    story.append(para(item.link))
        if document.education:
            story.append(para("Education", heading))
            for item in document.education:
                line = ", ".join(
                    value for value in (item.course, item.institution, item.duration) if value
                )
                story.append(para(line))
        if document.skills:
            story.extend([para("Skills", heading), para(", ".join(document.skills))])
        if document.certifications:
            story.append(para("Certifications", heading))
            story.extend(para(f"- {value}") for value in document.certifications)
        return story
