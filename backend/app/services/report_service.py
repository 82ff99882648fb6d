"""
PDF report generation with ReportLab.

Two documents are produced: a single-analysis report (text plus an optional
image) and a history report listing every scan of a user.
"""
import base64
import io
import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence, Union
from xml.sax.saxutils import escape

import httpx
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer

from app.core.config import settings
from app.core.utils import format_report_date, format_report_datetime
from app.services.analysis_service import fetch_image

logger = logging.getLogger(__name__)

IMAGE_MAX_WIDTH = 500
IMAGE_MAX_HEIGHT = 300
IMAGE_NOTE = "Note: Could not include image in the PDF"

DATA_URI_PATTERN = re.compile(r"^data:image/[\w.+-]+;base64,")


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("ReportTitle", parent=base["Title"], fontSize=24, leading=28, alignment=TA_CENTER),
        "heading": ParagraphStyle("ReportHeading", parent=base["Normal"], fontSize=16, leading=20),
        "subheading": ParagraphStyle("ReportSubheading", parent=base["Normal"], fontSize=14, leading=18),
        "body": ParagraphStyle("ReportBody", parent=base["Normal"], fontSize=14, leading=18),
        "entry": ParagraphStyle("ReportEntry", parent=base["Normal"], fontSize=12, leading=15),
        "note": ParagraphStyle("ReportNote", parent=base["Italic"], fontSize=12, leading=15),
    }


def _paragraph_text(text: str) -> str:
    """Escape markup characters and keep line breaks."""
    return escape(text).replace("\r\n", "\n").replace("\n", "<br/>")


def _new_document(target) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        target,
        pageCompression=1 if settings.PDF_PAGE_COMPRESSION else 0,
        title="Plant Analysis Report",
    )


def _fitted_image(image_bytes: bytes) -> Image:
    """Build an image flowable scaled to fit the report's bounding box."""
    reader = ImageReader(io.BytesIO(image_bytes))
    width, height = reader.getSize()
    if width <= 0 or height <= 0:
        raise ValueError("Image has no size")
    scale = min(IMAGE_MAX_WIDTH / width, IMAGE_MAX_HEIGHT / height)
    return Image(io.BytesIO(image_bytes), width=width * scale, height=height * scale)


async def resolve_report_image(client: httpx.AsyncClient, image: Optional[str]) -> Optional[bytes]:
    """
    Turn the image reference of a report request into bytes.

    Remote URLs are fetched, base64 data URIs are decoded, anything else is
    ignored. Raises on fetch or decode failure.
    """
    if not image:
        return None
    if image.startswith("http"):
        content, _ = await fetch_image(client, image)
        return content
    if image.startswith("data:image"):
        encoded = DATA_URI_PATTERN.sub("", image, count=1)
        return base64.b64decode(encoded, validate=True)
    return None


def build_analysis_report(
    result: str,
    image_bytes: Optional[bytes] = None,
    image_failed: bool = False,
    generated_at: Optional[datetime] = None
) -> bytes:
    """
    Render a single plant analysis as PDF bytes.

    If the image cannot be embedded (or `image_failed` is set by the caller
    after a failed fetch) a note replaces it and the rest is unaffected.
    """
    generated_at = generated_at or datetime.now()
    styles = _styles()
    story = [
        Paragraph("Plant Analysis Report", styles["title"]),
        Spacer(1, 12),
        Paragraph(f"Date: {format_report_date(generated_at)}", styles["heading"]),
        Spacer(1, 12),
        Paragraph(_paragraph_text(result), styles["body"]),
        Spacer(1, 12),
    ]

    if image_bytes is not None:
        try:
            story.append(_fitted_image(image_bytes))
        except Exception as e:
            # Any unreadable image degrades to the note below
            logger.warning(f"Error adding image to PDF: {e}")
            image_failed = True

    if image_failed:
        story.append(Spacer(1, 12))
        story.append(Paragraph(IMAGE_NOTE, styles["note"]))

    buffer = io.BytesIO()
    _new_document(buffer).build(story)
    return buffer.getvalue()


def build_history_report(
    username: str,
    images: Sequence,
    target: Union[str, io.BytesIO],
    generated_at: Optional[datetime] = None
) -> None:
    """Render a user's scan history, one section per image in insertion order."""
    generated_at = generated_at or datetime.now()
    styles = _styles()
    story: List = [
        Paragraph("Plant Analysis History", styles["title"]),
        Spacer(1, 12),
        Paragraph(f"User: {escape(username)}", styles["heading"]),
        Spacer(1, 12),
        Paragraph(f"Generated on: {format_report_date(generated_at)}", styles["subheading"]),
        Spacer(1, 24),
    ]

    if images:
        for index, image in enumerate(images, start=1):
            story.append(Paragraph(f"<u>Scan {index}</u>", styles["subheading"]))
            story.append(Paragraph(f"Date: {format_report_datetime(image.created_at)}", styles["entry"]))
            story.append(Paragraph(f"Image URL: {escape(image.url)}", styles["entry"]))
            if image.plant_type:
                story.append(Paragraph(f"Plant Type: {escape(image.plant_type)}", styles["entry"]))
            story.append(Spacer(1, 12))
    else:
        story.append(Paragraph("No scans found in history.", styles["entry"]))

    _new_document(target).build(story)

