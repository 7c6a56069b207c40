from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from .engine import (
    ANNUAL, TERM1, TERM2, TERM3, TERM_KEYS,
    RawMark, StudentInfo, SubjectInfo, GradingBand,
    aggregate, cell_value, columns_for, format_cell, is_low, normalize_term,
    remark, term_label, validate_bands,
)
from .engine.numeric import clean_score, mean, round_half_up
from .pdf import pdf_filename
from .renderers import card_context


def student(pk, name=None):
    return StudentInfo(
        id=pk,
        name=name or f"STUDENT {pk}",
        registration_number=f"REG{pk:03d}",
        date_of_birth=date(2010, 1, pk % 28 + 1) if pk else None,
        class_name='FORM 1 A',
        department_name='GENERAL',
    )


MATH = SubjectInfo(id=1, code='MATH', title='MATHEMATICS', coefficient=4, category='general')
ENG = SubjectInfo(id=2, code='ENG', title='ENGLISH', coefficient=2, category='general')
ELEC = SubjectInfo(id=3, code='ELEC', title='ELECTRICITY', coefficient=3, category='professional')


def mark(st, subject, seq, score, teacher='Mr. Ndi'):
    return RawMark(
        student=st,
        subject=subject,
        sequence_number=seq,
        score=score,
        class_id=1,
        academic_year_id=1,
        academic_year_name='2024/2025',
        term_number=(seq + 1) // 2,
        teacher_name=teacher,
    )


class NumericHelperTests(SimpleTestCase):
    """Tests for rounding and score cleaning."""

    def test_round_half_away_from_zero(self):
        self.assertEqual(round_half_up(12.25), 12.3)
        self.assertEqual(round_half_up(12.35), 12.4)
        self.assertEqual(round_half_up(-12.25), -12.3)
        self.assertEqual(round_half_up(14.5, 0), 15.0)

    def test_mean_skips_missing_values(self):
        self.assertEqual(mean(16, None), 16.0)
        self.assertEqual(mean(None, None), None)
        self.assertEqual(mean(15, 16), 15.5)
        self.assertEqual(mean('abc', 12), 12.0)

    def test_clean_score(self):
        self.assertEqual(clean_score(Decimal('12.50')), 12.5)
        self.assertEqual(clean_score('14'), 14.0)
        self.assertIsNone(clean_score(21))
        self.assertIsNone(clean_score(-1))
        self.assertIsNone(clean_score('n/a'))
        self.assertIsNone(clean_score(True))
        self.assertIsNone(clean_score(float('nan')))


class AggregateSubjectTests(SimpleTestCase):
    """Per-subject averages and bucketing."""

    def test_single_term_scenario(self):
        records = aggregate([mark(student(1), MATH, 1, 16), mark(student(1), MATH, 2, 18)], 'Master')
        scores = records[0].general_subjects[0].scores
        self.assertEqual(scores.term1_avg, 17.0)
        self.assertIsNone(scores.term2_avg)
        self.assertIsNone(scores.term3_avg)
        self.assertEqual(scores.final_avg, 17.0)

    def test_term_average_with_one_sequence(self):
        records = aggregate([mark(student(1), MATH, 3, 11)])
        scores = records[0].general_subjects[0].scores
        self.assertEqual(scores.term2_avg, 11.0)
        self.assertEqual(scores.final_avg, 11.0)

    def test_final_average_is_mean_of_term_averages(self):
        marks = [
            mark(student(1), MATH, 1, 10), mark(student(1), MATH, 2, 11),
            mark(student(1), MATH, 3, 14), mark(student(1), MATH, 4, 15),
            mark(student(1), MATH, 5, 8),
        ]
        scores = aggregate(marks)[0].general_subjects[0].scores
        self.assertEqual(scores.term1_avg, 10.5)
        self.assertEqual(scores.term2_avg, 14.5)
        self.assertEqual(scores.term3_avg, 8.0)
        self.assertEqual(scores.final_avg, 11.0)

    def test_duplicate_mark_first_write_wins(self):
        records = aggregate([mark(student(1), MATH, 1, 18), mark(student(1), MATH, 1, 12)])
        self.assertEqual(records[0].general_subjects[0].scores.seq1, 18.0)

    def test_invalid_score_does_not_fill_slot(self):
        records = aggregate([mark(student(1), MATH, 1, 25), mark(student(1), MATH, 1, 9)])
        self.assertEqual(records[0].general_subjects[0].scores.seq1, 9.0)

    def test_mark_without_student_is_dropped(self):
        records = aggregate([
            mark(None, MATH, 1, 12),
            mark(StudentInfo(id=None, name='GHOST'), MATH, 1, 12),
            mark(student(1), MATH, 1, 14),
        ])
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].student.id, 1)

    def test_unknown_category_goes_to_practical(self):
        sport = SubjectInfo(id=9, code='PE', title='SPORTS', coefficient=1, category='sports')
        none_category = SubjectInfo(id=10, code='ART', title='ART', coefficient=1, category=None)
        record = aggregate([mark(student(1), sport, 1, 15), mark(student(1), none_category, 1, 13)])[0]
        self.assertEqual([row.code for row in record.practical_subjects], ['PE', 'ART'])
        self.assertEqual(record.general_subjects, [])

    def test_subject_rows_split_by_category(self):
        record = aggregate([
            mark(student(1), MATH, 1, 12), mark(student(1), ELEC, 1, 14), mark(student(1), ENG, 1, 10),
        ])[0]
        self.assertEqual([row.code for row in record.general_subjects], ['MATH', 'ENG'])
        self.assertEqual([row.code for row in record.professional_subjects], ['ELEC'])

    def test_missing_coefficient_counts_as_one(self):
        no_coef = SubjectInfo(id=11, code='HIS', title='HISTORY', coefficient=None, category='general')
        record = aggregate([mark(student(1), no_coef, 1, 12)])[0]
        self.assertEqual(record.general_subjects[0].coef, 1)

    def test_teacher_defaults_to_na(self):
        record = aggregate([mark(student(1), MATH, 1, 12, teacher='')])[0]
        self.assertEqual(record.general_subjects[0].teacher, 'N/A')


class AggregateTotalsTests(SimpleTestCase):
    """Term totals, ranks and class statistics."""

    def test_weighted_term_total(self):
        record = aggregate([
            mark(student(1), MATH, 1, 12), mark(student(1), MATH, 2, 14),   # 13.0 x 4
            mark(student(1), ENG, 1, 10),                                   # 10.0 x 2
        ])[0]
        term1 = record.term_totals[TERM1]
        self.assertEqual(term1.total, 72.0)
        self.assertEqual(term1.average, 12.0)

    def test_term_without_marks_is_zero(self):
        record = aggregate([mark(student(1), MATH, 1, 12)])[0]
        self.assertEqual(record.term_totals[TERM2].total, 0)
        self.assertEqual(record.term_totals[TERM2].average, 0)

    def test_annual_uses_positive_term_averages(self):
        record = aggregate([
            mark(student(1), MATH, 1, 12),
            mark(student(1), MATH, 5, 15),
        ])[0]
        annual = record.term_totals[ANNUAL]
        self.assertEqual(annual.average, 13.5)
        self.assertEqual(annual.total, 108.0)

    def test_annual_zero_when_no_term_average(self):
        record = aggregate([mark(student(1), MATH, 1, 'absent')])[0]
        self.assertEqual(record.term_totals[ANNUAL].total, 0)
        self.assertEqual(record.term_totals[ANNUAL].average, 0)

    def test_class_statistics_skip_zero_averages(self):
        records = aggregate([
            mark(student(1), MATH, 1, 12),
            mark(student(2), MATH, 1, 'x'),
            mark(student(3), MATH, 1, 15),
        ])
        stats = records[0].class_statistics
        self.assertEqual(stats.class_average, 13.5)
        self.assertEqual(stats.highest_average, 15.0)
        self.assertEqual(stats.lowest_average, 12.0)
        self.assertEqual(records[1].term_totals[ANNUAL].rank, 3)
        self.assertEqual(records[1].term_totals[ANNUAL].out_of, 3)

    def test_class_statistics_shared_by_all_records(self):
        records = aggregate([mark(student(1), MATH, 1, 12), mark(student(2), MATH, 1, 14)])
        self.assertIs(records[0].class_statistics, records[1].class_statistics)

    def test_class_statistics_zero_when_nobody_qualifies(self):
        records = aggregate([mark(student(1), MATH, 1, None)])
        stats = records[0].class_statistics
        self.assertEqual((stats.class_average, stats.highest_average, stats.lowest_average), (0, 0, 0))

    def test_ranks_are_a_permutation_and_monotonic(self):
        scores = [14, 9, 17, 11, 14]
        marks = [mark(student(pk), MATH, 1, score) for pk, score in enumerate(scores, 1)]
        records = aggregate(marks)
        for key in TERM_KEYS:
            ranks = sorted(r.term_totals[key].rank for r in records)
            self.assertEqual(ranks, list(range(1, len(records) + 1)))
            self.assertTrue(all(r.term_totals[key].out_of == len(records) for r in records))
        for a in records:
            for b in records:
                if a.term_totals[TERM1].average > b.term_totals[TERM1].average:
                    self.assertLess(a.term_totals[TERM1].rank, b.term_totals[TERM1].rank)

    def test_ties_keep_first_seen_order(self):
        records = aggregate([mark(student(1), MATH, 1, 14), mark(student(2), MATH, 1, 14)])
        self.assertEqual(records[0].term_totals[TERM1].rank, 1)
        self.assertEqual(records[1].term_totals[TERM1].rank, 2)

    def test_idempotent(self):
        marks = [
            mark(student(1), MATH, 1, 12), mark(student(1), ELEC, 3, 16),
            mark(student(2), MATH, 1, 9), mark(student(2), ENG, 6, 13.75),
        ]
        first = [r.to_dict() for r in aggregate(marks, 'Master', TERM2)]
        second = [r.to_dict() for r in aggregate(list(marks), 'Master', TERM2)]
        self.assertEqual(first, second)

    def test_record_serialization(self):
        record = aggregate([mark(student(1), MATH, 1, 12)], 'MR NDI', TERM1, principal_name='DR EKO')[0]
        data = record.to_dict()
        self.assertEqual(data['student']['registrationNumber'], 'REG001')
        self.assertEqual(data['student']['term'], 'FIRST TERM')
        self.assertEqual(data['student']['academicYear'], '2024/2025')
        self.assertEqual(data['administration']['classMaster'], 'MR NDI')
        self.assertEqual(data['administration']['principal'], 'DR EKO')
        self.assertEqual(data['sequences']['seq4'], {'name': 'Sequence 4', 'weight': 1})
        self.assertEqual(set(data['termTotals']), {'term1', 'term2', 'term3', 'annual'})
        self.assertEqual(
            set(data['termTotals']['term1']), {'total', 'average', 'rank', 'outOf'}
        )
        self.assertEqual(data['generalSubjects'][0]['scores']['seq1'], 12.0)


class RemarkTests(SimpleTestCase):
    """Tests for the remark resolver."""

    def test_default_scale(self):
        self.assertEqual(remark(18.5), ('Excellent', 'remark-excellent'))
        self.assertEqual(remark(16), ('Very Good', 'remark-very-good'))
        self.assertEqual(remark(12.0), ('Fairly Good', 'remark-fairly-good'))
        self.assertEqual(remark(3), ('Weak', 'remark-weak'))

    def test_missing_average_uses_call_site_placeholder(self):
        self.assertEqual(remark(None), ('', ''))
        self.assertEqual(remark(None, empty='N/A'), ('N/A', ''))
        self.assertEqual(remark(float('nan'), empty='N/A'), ('N/A', ''))

    def test_custom_scale_keeps_default_styling(self):
        scale = [GradingBand(0, 9, 'Weak'), GradingBand(10, 14, 'very good'), GradingBand(15, 20, 'Brilliant')]
        self.assertEqual(remark(12, scale), ('very good', 'remark-very-good'))
        self.assertEqual(remark(17, scale), ('Brilliant', ''))

    def test_no_band_matches(self):
        scale = [GradingBand(10, 11, 'Average'), GradingBand(12, 13, 'Fairly Good')]
        self.assertEqual(remark(11.5, scale), ('No Remark', ''))

    def test_higher_band_wins_on_overlap(self):
        scale = [GradingBand(10, 15, 'Average'), GradingBand(14, 20, 'Good')]
        self.assertEqual(remark(14.5, scale)[0], 'Good')

    def test_validate_bands(self):
        self.assertEqual(validate_bands([
            {'band_min': 0, 'band_max': 9, 'comment': 'Weak'},
            {'band_min': 10, 'band_max': 20, 'comment': 'Pass'},
        ]), [])
        errors = validate_bands([
            {'band_min': 0, 'band_max': 10, 'comment': 'Weak'},
            {'band_min': 10, 'band_max': 20, 'comment': 'Pass'},
            {'band_min': 5, 'band_max': 3, 'comment': 'Bad'},
            {'band_min': 1.5, 'band_max': 3, 'comment': 'Bad'},
            {'band_min': 0, 'band_max': 25, 'comment': 'Bad'},
            {'band_min': 0, 'band_max': 2, 'comment': 'x'},
        ])
        self.assertEqual(len(errors), 5)
        self.assertTrue(any('overlap' in error for error in errors))


class ColumnProjectorTests(SimpleTestCase):
    """Tests for term columns and cell formatting."""

    def test_term2_columns(self):
        self.assertEqual(
            [c.key for c in columns_for(TERM2)],
            ['seq3', 'seq4', 'term2Avg', 'term1Avg', 'yearAvg'],
        )

    def test_layouts(self):
        self.assertEqual([c.key for c in columns_for(TERM1)], ['seq1', 'seq2', 'term1Avg'])
        self.assertEqual(
            [c.key for c in columns_for(TERM3)],
            ['seq5', 'seq6', 'term3Avg', 'term1Avg', 'term2Avg', 'finalAvg'],
        )
        self.assertEqual(
            [c.key for c in columns_for(ANNUAL)],
            ['seq1', 'seq2', 'term1Avg', 'seq3', 'seq4', 'term2Avg', 'seq5', 'seq6', 'term3Avg', 'finalAvg'],
        )

    def test_average_flags(self):
        flags = {c.key: c.is_average for c in columns_for(TERM2)}
        self.assertFalse(flags['seq3'])
        self.assertTrue(flags['yearAvg'])

    def test_year_average_projection(self):
        record = aggregate([
            mark(student(1), MATH, 1, 12), mark(student(1), MATH, 2, 13),
            mark(student(1), MATH, 3, 15),
        ])[0]
        scores = record.general_subjects[0].scores
        self.assertEqual(cell_value(scores, 'yearAvg'), 13.8)

    def test_format_cell(self):
        average, sequence = columns_for(TERM1)[2], columns_for(TERM1)[0]
        self.assertEqual(format_cell(12, average), '12.0')
        self.assertEqual(format_cell(12.5, sequence), '13')
        self.assertEqual(format_cell(None, sequence), '-')

    def test_low_score_highlight(self):
        average, sequence = columns_for(TERM1)[2], columns_for(TERM1)[0]
        self.assertTrue(is_low(9.9, average))
        self.assertFalse(is_low(10, average))
        self.assertFalse(is_low(4, sequence))
        self.assertFalse(is_low(None, average))

    def test_normalize_term(self):
        self.assertEqual(normalize_term('First Term'), TERM1)
        self.assertEqual(normalize_term('t2'), TERM2)
        self.assertEqual(normalize_term('THIRD'), TERM3)
        self.assertEqual(normalize_term('term3'), TERM3)
        self.assertEqual(normalize_term('Annual'), ANNUAL)
        self.assertEqual(normalize_term(''), ANNUAL)
        self.assertEqual(normalize_term('whatever'), ANNUAL)
        self.assertEqual(normalize_term(None, TERM3), TERM3)

    def test_term_label(self):
        self.assertEqual(term_label(TERM2), 'SECOND TERM')
        self.assertEqual(term_label(ANNUAL), 'ANNUAL')

    def test_pdf_filename(self):
        self.assertEqual(
            pdf_filename('2024/2025', 'General Education', 'Form 1 A', TERM1),
            '2024_2025-General_Education-Form_1_A-FIRST_TERM-report-cards.pdf',
        )


class CardContextTests(SimpleTestCase):
    """Tests for the printed card projection of a record."""

    def setUp(self):
        st = student(1)
        self.record = aggregate([
            mark(st, MATH, 3, 12),
            mark(st, MATH, 4, 14),
            mark(st, ENG, 3, 10),
            mark(st, ELEC, 3, 8),
        ], 'Mr. Ndi', selected_term=TERM2)[0]

    def section(self, context, title):
        return next(s for s in context['sections'] if s['title'] == title)

    def test_category_subtotals_are_weighted(self):
        context = card_context(self.record, TERM2)
        general = self.section(context, 'GENERAL SUBJECTS')
        professional = self.section(context, 'PROFESSIONAL SUBJECTS')

        # (13.0 * 4 + 10.0 * 2) / 6
        self.assertEqual(general['subtotal'], {'total': '72.0', 'average': '12.0', 'low': False})
        self.assertEqual(professional['subtotal'], {'total': '24.0', 'average': '8.0', 'low': True})
        self.assertEqual([s['title'] for s in context['sections']], ['GENERAL SUBJECTS', 'PROFESSIONAL SUBJECTS'])

    def test_subject_lines(self):
        context = card_context(self.record, TERM2)
        math = self.section(context, 'GENERAL SUBJECTS')['rows'][0]
        self.assertEqual(math['code'], 'MATH')
        self.assertEqual([cell['text'] for cell in math['cells']], ['12', '14', '13.0', '-', '13.0'])
        self.assertEqual(math['points'], '52.0')
        self.assertEqual((math['remark'], math['remark_class']), ('Fairly Good', 'remark-fairly-good'))

        elec = self.section(context, 'PROFESSIONAL SUBJECTS')['rows'][0]
        self.assertTrue(elec['cells'][2]['low'])
        self.assertFalse(elec['cells'][0]['low'])

    def test_summary(self):
        context = card_context(self.record, TERM2)
        # (52 + 20 + 24) / 9
        self.assertEqual(context['summary']['total'], '96.0')
        self.assertEqual(context['summary']['average'], '10.7')
        self.assertEqual((context['summary']['rank'], context['summary']['out_of']), (1, 1))

    def test_scope_without_averages(self):
        context = card_context(self.record, TERM1)
        general = self.section(context, 'GENERAL SUBJECTS')
        self.assertEqual(general['subtotal'], {'total': '-', 'average': '-', 'low': False})
        self.assertEqual(general['rows'][0]['remark'], 'N/A')
