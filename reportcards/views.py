import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from . import config
from .engine import normalize_term
from .exceptions import InvalidPayload, MissingParameters, ReportCardError, StudentNotInReport
from .exports import build_broadsheet
from .pdf import pdf_filename, render_pdf
from .renderers import record_json, render_bulk_json, render_html
from .services import (
    build_branding, build_class_report, resolve_scope,
    save_grading_bands, save_marks_batch,
)

logger = logging.getLogger(__name__)

BRANDING_PARAMS = ('schoolName', 'schoolMotto', 'schoolAddress', 'principal', 'classMaster')


def report_card_errors(view_func):
    """Translate ReportCardError into the JSON error response."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ReportCardError as e:
            if e.status_code >= 500:
                logger.error(f"{request.path} failed: {e.message}")
            else:
                logger.info(f"{request.path} rejected ({e.status_code}): {e.message}")
            payload = {'status': 'error', 'message': e.message}
            if e.errors:
                payload['errors'] = e.errors
            return JsonResponse(payload, status=e.status_code)
    return wrapper


def _json_body(request):
    try:
        data = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidPayload('Invalid JSON') from None
    if not isinstance(data, dict):
        raise InvalidPayload('Expected a JSON object')
    return data


def _class_report(request, default_term, with_overrides=False):
    params = request.GET
    scope = resolve_scope(
        params.get('academicYearId'),
        params.get('departmentId'),
        params.get('classId'),
    )
    term = normalize_term(params.get('term'), default_term)
    if with_overrides:
        return build_class_report(
            scope, term,
            class_master=params.get('classMaster'),
            principal=params.get('principal'),
        ), term
    return build_class_report(scope, term), term


def _print_document(request):
    report, term = _class_report(request, config.DEFAULT_PRINT_TERM, with_overrides=True)
    overrides = {name: request.GET.get(name) for name in BRANDING_PARAMS}
    html = render_html(report.records, term, report.bands, build_branding(overrides))
    return report, term, html


# ============ JSON ============

@login_required
@require_GET
@report_card_errors
def bulk_report_cards(request):
    """All report cards of a class: {count, reportCards}."""
    report, term = _class_report(request, config.DEFAULT_JSON_TERM)
    return JsonResponse(render_bulk_json(report.records, term, report.bands))


@login_required
@require_GET
@report_card_errors
def single_report_card(request):
    """One student's report card, ranked against the whole class."""
    required = ('academicYearId', 'departmentId', 'classId', 'studentId')
    missing = [name for name in required if not request.GET.get(name)]
    if missing:
        raise MissingParameters(f"Missing parameters: {', '.join(missing)}")
    student_id = request.GET['studentId']
    report, term = _class_report(request, config.DEFAULT_JSON_TERM)

    for record in report.records:
        if str(record.student.id) == str(student_id).strip():
            return JsonResponse({'reportCard': record_json(record, term, report.bands)})
    raise StudentNotInReport(f"Student not found in this report: studentId={student_id}")


# ============ Print ============

@login_required
@require_GET
@report_card_errors
def bulk_report_cards_pdf(request):
    report, term, html = _print_document(request)
    pdf_bytes = render_pdf(html)

    scope = report.scope
    filename = pdf_filename(scope.academic_year.name, scope.department.name, scope.klass.name, term)
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@login_required
@require_GET
@report_card_errors
def bulk_report_cards_html(request):
    _, _, html = _print_document(request)
    response = HttpResponse(html, content_type='text/html; charset=utf-8')
    response['Content-Disposition'] = 'inline'
    return response


@login_required
@require_GET
@report_card_errors
def class_broadsheet(request):
    """Excel broadsheet of a class's averages and ranks."""
    report, term = _class_report(request, config.DEFAULT_PRINT_TERM)
    scope = report.scope
    title = f"{scope.klass.name} - {scope.department.name} - {scope.academic_year.name}"
    content = build_broadsheet(report.records, title, report.bands)

    response = HttpResponse(
        content,
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    filename = pdf_filename(scope.academic_year.name, scope.department.name, scope.klass.name, term)
    filename = filename.replace('-report-cards.pdf', '-broadsheet.xlsx')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# ============ Writes ============

@login_required
@require_POST
@report_card_errors
def save_marks(request):
    """
    Batch upsert marks. Body: academic_year_id, class_id, term_id,
    sequence_id, subject_id and marks: [{student_id, score}, ...].
    """
    data = _json_body(request)
    result = save_marks_batch(data, data.get('marks'), uploaded_by=request.user)
    return JsonResponse({'status': 'success', **result})


@login_required
@require_POST
@report_card_errors
def save_bands(request):
    """Replace the grading bands of a class for an academic year."""
    data = _json_body(request)
    bands = save_grading_bands(data.get('academic_year_id'), data.get('class_id'), data.get('bands'))
    return JsonResponse({
        'status': 'success',
        'count': len(bands),
        'bands': [
            {'band_min': b.band_min, 'band_max': b.band_max, 'comment': b.comment}
            for b in bands
        ],
    }, status=201)


@login_required
@require_POST
@report_card_errors
def queue_snapshots(request):
    """Queue a snapshot of a class's report cards."""
    data = _json_body(request)
    scope = resolve_scope(data.get('academicYearId'), data.get('departmentId'), data.get('classId'))
    term = normalize_term(data.get('term'), config.DEFAULT_PRINT_TERM)

    from .tasks import snapshot_class_report_cards
    result = snapshot_class_report_cards.delay(
        scope.academic_year.pk, scope.klass.pk, term, request.user.pk
    )
    logger.info(f"Queued snapshot of {scope.klass.name} ({term}) as task {result.id}")
    return JsonResponse({'status': 'queued', 'task_id': result.id, 'term': term}, status=202)
