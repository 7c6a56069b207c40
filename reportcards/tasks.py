"""
Celery tasks for the reportcards app.
Snapshot a class's report cards and export them as a ZIP of PDFs.
"""
import logging
import os
import uuid
import zipfile

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import OperationalError

from . import config
from .engine import normalize_term, term_label
from .exceptions import NoMarksFound, PdfRenderError, ScopeNotFound
from .pdf import render_pdf
from .renderers import render_html
from .services import build_branding, build_class_report, resolve_class_scope, store_snapshots

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=config.TASK_MAX_RETRIES,
    default_retry_delay=config.TASK_RETRY_DELAY,
)
def snapshot_class_report_cards(self, academic_year_id, class_id, term=None, generated_by_id=None):
    """
    Aggregate a class and store one ReportCardSnapshot per student,
    replacing earlier snapshots of the same scope.

    Retries on transient database errors.
    """
    term = normalize_term(term, config.DEFAULT_PRINT_TERM)
    try:
        scope = resolve_class_scope(academic_year_id, class_id)
        report = build_class_report(scope, term)
    except (ScopeNotFound, NoMarksFound) as e:
        # Non-retryable
        logger.error(f"Snapshot of class {class_id} skipped: {e.message}")
        return {'success': False, 'error': e.message}
    except OperationalError as exc:
        logger.warning(f"Snapshot of class {class_id} hit a database error, retrying: {exc}")
        raise self.retry(exc=exc)

    generated_by = None
    if generated_by_id:
        generated_by = get_user_model().objects.filter(pk=generated_by_id).first()

    snapshots = store_snapshots(report, term, generated_by)
    return {'success': True, 'count': len(snapshots), 'term': term}


@shared_task(bind=True, max_retries=0)
def export_class_reports_zip(self, academic_year_id, class_id, term=None):
    """
    Generate a ZIP file containing one PDF report card per student of a class.

    Updates task state with progress so the caller can poll for status.

    Returns:
        dict with success, filename, total, and errors list
    """
    term = normalize_term(term, config.DEFAULT_PRINT_TERM)
    try:
        scope = resolve_class_scope(academic_year_id, class_id)
        report = build_class_report(scope, term)
    except (ScopeNotFound, NoMarksFound) as e:
        logger.error(f"ZIP export of class {class_id} skipped: {e.message}")
        return {'success': False, 'error': e.message}

    branding = build_branding()
    export_dir = os.path.join(settings.MEDIA_ROOT, config.EXPORT_DIR)
    os.makedirs(export_dir, exist_ok=True)

    class_name = scope.klass.name.replace(' ', '_')
    term_name = term_label(term).replace(' ', '_')
    zip_filename = f"{class_name}_{term_name}_{uuid.uuid4().hex[:8]}.zip"
    zip_path = os.path.join(export_dir, zip_filename)

    total = len(report.records)
    errors = []

    with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zf:
        for i, record in enumerate(report.records):
            self.update_state(
                state='PROGRESS',
                meta={'current': i + 1, 'total': total},
            )
            try:
                html = render_html([record], term, report.bands, branding)
                zf.writestr(
                    f"report_card_{record.student.registration_number}.pdf",
                    render_pdf(html),
                )
            except PdfRenderError as e:
                logger.error(f"PDF generation failed for {record.student.name}: {e.message}")
                errors.append(f"{record.student.name}: {e.message[:100]}")

    return {
        'success': True,
        'filename': f"{config.EXPORT_DIR}/{zip_filename}",
        'total': total,
        'errors': errors,
    }
