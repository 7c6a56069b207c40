"""
HTML to PDF through WeasyPrint, plus the download filename of a class PDF.
"""
import logging
import re
from io import BytesIO

from django.conf import settings
from weasyprint import HTML

from .engine import term_label
from .exceptions import PdfRenderError

logger = logging.getLogger(__name__)


def render_pdf(html_string):
    """Render a complete HTML document to PDF bytes. Never returns a partial file."""
    try:
        html = HTML(string=html_string, base_url=str(settings.BASE_DIR))
        pdf_buffer = BytesIO()
        html.write_pdf(pdf_buffer)
    except Exception as e:
        logger.exception(f"PDF generation failed: {e}")
        raise PdfRenderError(f"PDF generation failed: {e}") from e

    pdf_bytes = pdf_buffer.getvalue()
    if not pdf_bytes:
        logger.error("PDF generation returned an empty document")
        raise PdfRenderError("PDF generation returned an empty document")
    return pdf_bytes


def _filename_part(value):
    return re.sub(r'[^A-Za-z0-9._-]+', '_', str(value)).strip('_') or 'unknown'


def pdf_filename(academic_year, department, class_name, term):
    """e.g. 2024_2025-GENERAL_EDUCATION-FORM_1_A-ANNUAL-report-cards.pdf"""
    parts = [academic_year, department, class_name, term_label(term)]
    return '-'.join(_filename_part(part) for part in parts) + '-report-cards.pdf'
