"""
Report-card services: request scope validation, class report building,
batch mark upsert, grading band replacement and snapshots.
"""
import base64
import logging
import time
from collections import namedtuple
from decimal import Decimal, InvalidOperation

from django.db import DatabaseError, OperationalError, transaction

from academics.models import Class, Department, Subject
from core.models import AcademicYear, SchoolSettings, Sequence, Term
from students.models import Student
from . import config
from .engine import MAX_SCORE, MIN_SCORE, aggregate, validate_bands
from .exceptions import (
    BatchRejected, InvalidPayload, MissingParameters, NoMarksFound, ScopeNotFound,
)
from .models import GradingBand, Mark, ReportCardSnapshot
from .reader import read_class_marks
from .renderers import record_json

logger = logging.getLogger(__name__)

ReportScope = namedtuple('ReportScope', ['academic_year', 'department', 'klass'])
ClassReport = namedtuple('ClassReport', ['scope', 'records', 'bands'])


# ============ Scope ============

def _require(params):
    """Raise MissingParameters naming every empty parameter."""
    missing = [name for name, value in params.items() if value in (None, '')]
    if missing:
        raise MissingParameters(f"Missing parameters: {', '.join(missing)}")


def _parse_id(name, value):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise InvalidPayload(f"Invalid {name}: {value}") from None
    if parsed <= 0:
        raise InvalidPayload(f"Invalid {name}: {value}")
    return parsed


def resolve_scope(academic_year_id, department_id, class_id):
    """
    Validate the (year, department, class) of a report request before any
    aggregation runs.
    """
    _require({
        'academicYearId': academic_year_id,
        'departmentId': department_id,
        'classId': class_id,
    })
    year_pk = _parse_id('academicYearId', academic_year_id)
    department_pk = _parse_id('departmentId', department_id)
    class_pk = _parse_id('classId', class_id)

    academic_year = AcademicYear.objects.filter(pk=year_pk).first()
    if academic_year is None:
        raise ScopeNotFound(f"Academic year not found: academicYearId={year_pk}")
    department = Department.objects.filter(pk=department_pk).first()
    if department is None:
        raise ScopeNotFound(f"Department not found: departmentId={department_pk}")
    klass = Class.objects.select_related('class_master__user').filter(pk=class_pk).first()
    if klass is None:
        raise ScopeNotFound(f"Class not found: classId={class_pk}")
    if klass.department_id != department.pk:
        raise ScopeNotFound(f"Class {klass.name} is not in department {department.name}: classId={class_pk}")

    return ReportScope(academic_year, department, klass)


def resolve_class_scope(academic_year_id, class_id):
    """Scope of a class in its own department, for callers that only know the class."""
    _require({'academicYearId': academic_year_id, 'classId': class_id})
    class_pk = _parse_id('classId', class_id)
    klass = Class.objects.filter(pk=class_pk).first()
    if klass is None:
        raise ScopeNotFound(f"Class not found: classId={class_pk}")
    return resolve_scope(academic_year_id, klass.department_id, class_pk)


def principal_name():
    school = SchoolSettings.load()
    return school.principal_name or config.PRINCIPAL_NAME


def build_class_report(scope, term, class_master=None, principal=None):
    """Aggregate a class's marks for the given scope into report records."""
    raw_marks, bands = read_class_marks(scope.academic_year.pk, scope.klass.pk)
    if not raw_marks:
        raise NoMarksFound(
            f"No data found for class {scope.klass.name} in {scope.academic_year.name}"
        )
    records = aggregate(
        raw_marks,
        class_master or scope.klass.class_master_name,
        selected_term=term,
        principal_name=principal or principal_name(),
    )
    logger.info(f"Built {len(records)} report cards for {scope.klass.name} ({term})")
    return ClassReport(scope, records, bands)


# ============ Branding ============

def encode_logo_base64(school):
    """School logo as a data URI for PDF embedding, or None."""
    if not school.logo:
        return None
    try:
        with school.logo.open('rb') as logo_file:
            logo_data = logo_file.read()
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read school logo {school.logo.name}: {e}")
        return None

    encoded = base64.b64encode(logo_data).decode('utf-8')
    name = school.logo.name.lower()
    if name.endswith('.png'):
        return f"data:image/png;base64,{encoded}"
    if name.endswith('.gif'):
        return f"data:image/gif;base64,{encoded}"
    return f"data:image/jpeg;base64,{encoded}"


def build_branding(overrides=None):
    """School header for printed cards; query overrides win over SchoolSettings."""
    overrides = overrides or {}
    school = SchoolSettings.load()
    return {
        'school_name': overrides.get('schoolName') or school.display_name,
        'motto': overrides.get('schoolMotto') or school.motto,
        'address': overrides.get('schoolAddress') or school.address,
        'phone': school.phone,
        'email': school.email,
        'logo': encode_logo_base64(school),
    }


# ============ Batch Mark Upsert ============

MARK_HEADER_FIELDS = ('academic_year_id', 'class_id', 'term_id', 'sequence_id', 'subject_id')


def _resolve_mark_header(header):
    _require({name: header.get(name) for name in MARK_HEADER_FIELDS})
    ids = {name: _parse_id(name, header.get(name)) for name in MARK_HEADER_FIELDS}

    lookups = {
        'academic_year_id': AcademicYear,
        'class_id': Class,
        'term_id': Term,
        'sequence_id': Sequence,
        'subject_id': Subject,
    }
    for name, model in lookups.items():
        if not model.objects.filter(pk=ids[name]).exists():
            raise ScopeNotFound(f"{model._meta.verbose_name} not found: {name}={ids[name]}")

    term = Term.objects.get(pk=ids['term_id'])
    sequence = Sequence.objects.get(pk=ids['sequence_id'])
    if term.academic_year_id != ids['academic_year_id']:
        raise InvalidPayload('term_id does not belong to academic_year_id')
    if sequence.term_id != term.pk:
        raise InvalidPayload('sequence_id does not belong to term_id')
    return ids


def _clean_item(item, existing_students):
    """Return (student_id, score) or raise ValueError with the reason."""
    if not isinstance(item, dict):
        raise ValueError('Mark must be an object')

    student_id = item.get('student_id')
    if isinstance(student_id, bool) or not isinstance(student_id, int) or student_id <= 0:
        raise ValueError('student_id must be a positive integer')
    if student_id not in existing_students:
        raise ValueError(f"Student {student_id} does not exist")

    raw_score = item.get('score')
    if raw_score is None or isinstance(raw_score, bool):
        raise ValueError('score is required')
    try:
        score = Decimal(str(raw_score)).quantize(Decimal('0.01'))
    except InvalidOperation:
        raise ValueError(f"score must be numeric, got {raw_score!r}") from None
    if not score.is_finite():
        raise ValueError(f"score must be numeric, got {raw_score!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValueError(f"score must be between {MIN_SCORE} and {MAX_SCORE}")
    return student_id, score


def _existing_marks(ids, student_ids):
    """Marks already stored for the header's slot, keyed by student id."""
    marks = Mark.objects.filter(
        student_id__in=student_ids,
        subject_id=ids['subject_id'],
        class_assigned_id=ids['class_id'],
        academic_year_id=ids['academic_year_id'],
        term_id=ids['term_id'],
        sequence_id=ids['sequence_id'],
    )
    return {mark.student_id: mark for mark in marks}


def _write_mark(ids, student_id, score, uploaded_by, existing=None):
    """Update ``existing`` or insert a new mark. Returns (mark, created)."""
    if existing is not None:
        existing.score = score
        existing.uploaded_by = uploaded_by
        existing.save(update_fields=['score', 'uploaded_by', 'uploaded_at'])
        return existing, False
    mark = Mark.objects.create(
        student_id=student_id,
        subject_id=ids['subject_id'],
        class_assigned_id=ids['class_id'],
        academic_year_id=ids['academic_year_id'],
        term_id=ids['term_id'],
        sequence_id=ids['sequence_id'],
        score=score,
        uploaded_by=uploaded_by,
    )
    return mark, True


def _upsert_mark(ids, student_id, score, uploaded_by, existing=None):
    """
    Upsert one mark in its own savepoint, retrying transient database
    errors with exponential backoff. Returns (mark, created).
    """
    max_retries = config.MARK_MAX_RETRIES
    for attempt in range(max_retries + 1):
        try:
            with transaction.atomic():
                return _write_mark(ids, student_id, score, uploaded_by, existing)
        except OperationalError as e:
            if attempt == max_retries:
                raise
            delay = config.MARK_RETRY_BACKOFF * (2 ** attempt)
            logger.warning(f"Retrying mark for student {student_id} in {delay}s: {e}")
            time.sleep(delay)


def _save_group(ids, group, existing_students, uploaded_by):
    """
    Validate and upsert one group of (index, item) pairs. Stored marks of
    the group are looked up in a single query. Returns (created, updated, errors).
    """
    cleaned = []
    errors = []
    for index, item in group:
        try:
            cleaned.append((index, *_clean_item(item, existing_students)))
        except ValueError as e:
            errors.append({'index': index, 'error': str(e)})

    existing = _existing_marks(ids, {student_id for _, student_id, _ in cleaned}) if cleaned else {}
    created = updated = 0
    for index, student_id, score in cleaned:
        try:
            mark, was_created = _upsert_mark(
                ids, student_id, score, uploaded_by, existing.get(student_id)
            )
        except DatabaseError as e:
            logger.error(f"Mark for student {student_id} failed: {e}")
            errors.append({'index': index, 'error': 'Database error while saving mark'})
            continue
        # A repeated student later in the group updates the mark just written
        existing[student_id] = mark
        if was_created:
            created += 1
        else:
            updated += 1
    return created, updated, errors


def save_marks_batch(header, marks, uploaded_by=None):
    """
    Upsert a batch of marks for one (year, class, term, sequence, subject).

    Items are processed in groups of MARK_BATCH_SIZE, each group reading
    its stored marks in one query. The batch commits only when at least
    MARK_COMMIT_THRESHOLD of its items succeed; otherwise nothing is
    written and BatchRejected carries the per-item errors.
    """
    ids = _resolve_mark_header(header or {})
    if not isinstance(marks, list) or not marks:
        raise MissingParameters('Missing parameters: marks')

    candidate_ids = {
        item.get('student_id') for item in marks
        if isinstance(item, dict) and isinstance(item.get('student_id'), int)
    }
    existing_students = set(
        Student.objects.filter(pk__in=candidate_ids).values_list('pk', flat=True)
    )

    total = len(marks)
    batch_size = max(1, int(config.MARK_BATCH_SIZE))
    created = updated = 0
    errors = []

    with transaction.atomic():
        for start in range(0, total, batch_size):
            group = list(enumerate(marks[start:start + batch_size], start))
            group_created, group_updated, group_errors = _save_group(
                ids, group, existing_students, uploaded_by
            )
            logger.debug(
                f"Mark group {start // batch_size + 1}: {group_created} created, "
                f"{group_updated} updated, {len(group_errors)} failed"
            )
            created += group_created
            updated += group_updated
            errors.extend(group_errors)

        saved = created + updated
        if saved / total < config.MARK_COMMIT_THRESHOLD:
            logger.warning(f"Mark batch rejected: {saved}/{total} items succeeded")
            raise BatchRejected(
                f"Only {saved} of {total} marks could be saved; batch rolled back",
                errors=errors,
            )

    logger.info(f"Mark batch saved: {created} created, {updated} updated, {len(errors)} failed")
    return {
        'total': total,
        'created': created,
        'updated': updated,
        'failed': len(errors),
        'errors': errors,
    }


# ============ Grading Bands ============

def save_grading_bands(academic_year_id, class_id, bands):
    """Replace the custom scale of a class for an academic year."""
    _require({'academic_year_id': academic_year_id, 'class_id': class_id})
    year_pk = _parse_id('academic_year_id', academic_year_id)
    class_pk = _parse_id('class_id', class_id)
    if not isinstance(bands, list) or not bands:
        raise MissingParameters('Missing parameters: bands')

    errors = validate_bands(bands)
    if errors:
        raise InvalidPayload('Invalid grading bands', errors=errors)
    if not AcademicYear.objects.filter(pk=year_pk).exists():
        raise ScopeNotFound(f"Academic year not found: academic_year_id={year_pk}")
    if not Class.objects.filter(pk=class_pk).exists():
        raise ScopeNotFound(f"Class not found: class_id={class_pk}")

    with transaction.atomic():
        GradingBand.objects.filter(academic_year_id=year_pk, class_assigned_id=class_pk).delete()
        created = GradingBand.objects.bulk_create([
            GradingBand(
                academic_year_id=year_pk,
                class_assigned_id=class_pk,
                band_min=int(band['band_min']),
                band_max=int(band['band_max']),
                comment=str(band['comment']).strip(),
            )
            for band in bands
        ])
    logger.info(f"Saved {len(created)} grading bands for class {class_pk}, year {year_pk}")
    return created


# ============ Snapshots ============

def store_snapshots(report, term, generated_by=None):
    """Replace the stored snapshots of a class report with the given records."""
    scope = report.scope
    with transaction.atomic():
        ReportCardSnapshot.objects.filter(
            academic_year=scope.academic_year,
            class_assigned=scope.klass,
            term_scope=term,
        ).delete()
        snapshots = ReportCardSnapshot.objects.bulk_create([
            ReportCardSnapshot(
                student_id=record.student.id,
                academic_year=scope.academic_year,
                class_assigned=scope.klass,
                term_scope=term,
                data=record_json(record, term, report.bands),
                generated_by=generated_by,
            )
            for record in report.records
        ])
    logger.info(f"Stored {len(snapshots)} report card snapshots for {scope.klass.name} ({term})")
    return snapshots
