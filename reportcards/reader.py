"""
Reads marks and grading bands from the database into engine value types.
"""
import logging

from django.db import transaction

from academics.models import ClassSubject
from .engine import GradingBand as Band, RawMark, StudentInfo, SubjectInfo
from .engine.grading import remark_class_for
from .models import GradingBand, Mark

logger = logging.getLogger(__name__)


def _teacher_names(class_id):
    """subject_id -> name of the teacher assigned to that subject in the class."""
    names = {}
    allocations = ClassSubject.objects.filter(
        class_assigned_id=class_id
    ).select_related('teacher__user')
    for allocation in allocations:
        if allocation.teacher:
            names[allocation.subject_id] = allocation.teacher.display_name
    return names


def fetch_raw_marks(academic_year_id, class_id):
    """
    All marks of a class in an academic year, ordered by student name,
    subject code, term and sequence.
    """
    teachers = _teacher_names(class_id)
    marks = Mark.objects.filter(
        academic_year_id=academic_year_id,
        class_assigned_id=class_id,
    ).select_related(
        'student', 'subject', 'class_assigned__department',
        'academic_year', 'term', 'sequence',
    ).order_by(
        'student__first_name', 'student__other_names', 'student__last_name', 'student_id',
        'subject__code', 'term__term_number', 'sequence__order_number',
    )

    raw_marks = []
    for mark in marks:
        student = mark.student
        klass = mark.class_assigned
        raw_marks.append(RawMark(
            student=StudentInfo(
                id=student.pk,
                name=student.full_name.upper(),
                registration_number=student.admission_number.upper(),
                date_of_birth=student.date_of_birth,
                class_name=klass.name.upper(),
                department_name=klass.department.name.upper(),
            ),
            subject=SubjectInfo(
                id=mark.subject.pk,
                code=mark.subject.code.upper(),
                title=mark.subject.name.upper(),
                coefficient=mark.subject.coefficient,
                category=mark.subject.category,
            ),
            sequence_number=mark.sequence.order_number,
            score=mark.score,
            class_id=klass.pk,
            academic_year_id=mark.academic_year_id,
            academic_year_name=mark.academic_year.name.upper(),
            term_number=mark.term.term_number,
            teacher_name=teachers.get(mark.subject_id, ''),
        ))
    logger.debug(f"Read {len(raw_marks)} marks for class {class_id}, year {academic_year_id}")
    return raw_marks


def fetch_grading_bands(academic_year_id, class_id):
    """Custom scale of a class; an empty list means the default scale applies."""
    bands = GradingBand.objects.filter(
        academic_year_id=academic_year_id,
        class_assigned_id=class_id,
    ).order_by('-band_min')
    return [
        Band(band.band_min, band.band_max, band.comment, remark_class_for(band.comment))
        for band in bands
    ]


def read_class_marks(academic_year_id, class_id):
    """
    Marks and grading bands read in one transaction, so a concurrent mark
    batch is seen either entirely or not at all.
    """
    with transaction.atomic():
        return (
            fetch_raw_marks(academic_year_id, class_id),
            fetch_grading_bands(academic_year_id, class_id),
        )
