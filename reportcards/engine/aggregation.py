"""
Report-card aggregation: raw sequence marks in, ranked student records out.

``aggregate`` runs four passes, each finished for the whole class before
the next starts:

1. bucket marks by student and subject (first write wins per sequence slot)
2. subject term averages and final average
3. per-student weighted term totals and the annual total
4. ranks for every term scope and the shared class statistics

Data-quality problems never raise: marks without a student are dropped,
unknown categories are listed as practical and unusable scores are ignored.
"""
import logging

from core.choices import SubjectCategory

from .columns import term_label
from .numeric import as_number, clean_score, mean, round_half_up
from .types import (
    TERM1, TERM2, TERM3, ANNUAL, TERM_KEYS,
    Administration, ClassStatistics, StudentReportRecord,
    SubjectScoreRow, TermTotal,
)

logger = logging.getLogger(__name__)


def aggregate(raw_marks, class_master_name='', selected_term=TERM3, principal_name=''):
    """
    Build one StudentReportRecord per student found in ``raw_marks``.

    Records come back in the order their students were first seen, which is
    also the tie-break order for ranking.
    """
    administration = Administration(class_master=class_master_name or '', principal=principal_name or '')

    # ========== PASS 1: Bucket marks by student and subject ==========
    records = {}
    rows = {}
    seen = dropped = 0
    for mark in raw_marks:
        seen += 1
        student = mark.student
        if student is None or student.id is None:
            dropped += 1
            continue

        record = records.get(student.id)
        if record is None:
            record = StudentReportRecord(
                student=student,
                academic_year=mark.academic_year_name or '',
                term=term_label(selected_term),
                administration=administration,
            )
            records[student.id] = record

        row = _subject_row(record, rows, mark)
        _write_score(row, mark)

    if dropped:
        logger.debug(f"Dropped {dropped} marks without a student")

    # ========== PASS 2: Subject averages ==========
    for record in records.values():
        for row in record.all_subjects:
            _compute_subject_averages(row.scores)

    # ========== PASS 3: Term totals ==========
    for record in records.values():
        _compute_term_totals(record)

    # ========== PASS 4: Ranks and class statistics ==========
    result = list(records.values())
    _assign_ranks(result)
    statistics = class_statistics(result)
    for record in result:
        record.class_statistics = statistics

    logger.debug(f"Aggregated {len(result)} report cards from {seen} marks")
    return result


def _subject_row(record, rows, mark):
    subject = mark.subject
    category = SubjectCategory.parse(subject.category)
    subject_key = subject.code or subject.id
    key = (record.student.id, category, subject_key)

    row = rows.get(key)
    if row is None:
        coefficient = as_number(subject.coefficient)
        row = SubjectScoreRow(
            code=subject.code or '',
            title=subject.title or '',
            coef=1 if coefficient is None else (int(coefficient) if coefficient.is_integer() else coefficient),
            teacher=mark.teacher_name or 'N/A',
            category=category,
        )
        rows[key] = row
        record.subjects_for(category).append(row)
    return row


def _write_score(row, mark):
    if mark.sequence_number not in (1, 2, 3, 4, 5, 6):
        return
    score = clean_score(mark.score)
    if score is None:
        return
    slot = f"seq{mark.sequence_number}"
    if getattr(row.scores, slot) is None:
        setattr(row.scores, slot, score)


def _compute_subject_averages(scores):
    scores.term1_avg = mean(scores.seq1, scores.seq2)
    scores.term2_avg = mean(scores.seq3, scores.seq4)
    scores.term3_avg = mean(scores.seq5, scores.seq6)
    scores.final_avg = mean(scores.term1_avg, scores.term2_avg, scores.term3_avg)


def weighted_average(rows, average_key):
    """
    Return ``(total, average)`` where total is sum(avg * coef) over rows with
    an average for ``average_key`` and average is total / sum(coef) over
    the same rows (0 when none qualify).
    """
    total = 0
    coefficients = 0
    for row in rows:
        value = row.scores.get(average_key)
        if value is None:
            continue
        total += value * row.coef
        coefficients += row.coef
    if not coefficients:
        return round_half_up(total, 2), 0
    return round_half_up(total, 2), round_half_up(total / coefficients)


def _compute_term_totals(record):
    subjects = record.all_subjects
    for number, term_key in enumerate((TERM1, TERM2, TERM3), 1):
        total, average = weighted_average(subjects, f"term{number}Avg")
        record.term_totals[term_key] = TermTotal(total=total, average=average)

    terms = [record.term_totals[key] for key in (TERM1, TERM2, TERM3)]
    positive = [term.average for term in terms if term.average > 0]
    if positive:
        record.term_totals[ANNUAL] = TermTotal(
            total=round_half_up(sum(term.total for term in terms), 2),
            average=mean(*positive),
        )
    else:
        record.term_totals[ANNUAL] = TermTotal(total=0, average=0)


def _assign_ranks(records):
    out_of = len(records)
    for term_key in TERM_KEYS:
        # sorted() is stable with reverse=True, so ties keep first-seen order
        ordered = sorted(records, key=lambda r: r.term_totals[term_key].average, reverse=True)
        for position, record in enumerate(ordered, 1):
            record.term_totals[term_key].rank = position
            record.term_totals[term_key].out_of = out_of


def class_statistics(records):
    """Mean, highest and lowest annual average over students with one above 0."""
    averages = [r.term_totals[ANNUAL].average for r in records if r.term_totals[ANNUAL].average > 0]
    if not averages:
        return ClassStatistics(0, 0, 0)
    return ClassStatistics(
        class_average=round_half_up(sum(averages) / len(averages)),
        highest_average=round_half_up(max(averages)),
        lowest_average=round_half_up(min(averages)),
    )
