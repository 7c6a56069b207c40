import io
import shutil
import tempfile
import zipfile
from datetime import date
from decimal import Decimal
from unittest import mock

import openpyxl
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import OperationalError, connection
from django.test import TestCase, override_settings
from django.test.utils import CaptureQueriesContext
from django.urls import reverse

from academics.models import Class, ClassSubject, Department, Subject
from core.models import AcademicYear, SchoolSettings, Sequence, Term
from students.models import Student
from teachers.models import Teacher

from . import services
from .exceptions import (
    BatchRejected, InvalidPayload, MissingParameters, NoMarksFound,
    PdfRenderError, ScopeNotFound,
)
from .models import GradingBand, Mark, ReportCardSnapshot
from .pdf import render_pdf
from .reader import fetch_grading_bands, fetch_raw_marks
from .services import (
    build_class_report, resolve_scope, save_grading_bands, save_marks_batch,
)
from .tasks import export_class_reports_zip, snapshot_class_report_cards

User = get_user_model()


class ReportCardDataMixin:
    """
    A class of three students with marks in the first term:

    Alice   MATH 16, 18 (coef 4)  ENG 12 (coef 2)  -> term1 average 15.3
    Bruno   MATH 8, 10                             -> term1 average 9.0
    Chantal ELEC 14 (coef 3, professional)         -> term1 average 14.0
    """

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(email='admin@school.test', password='pass')

        cls.year = AcademicYear.objects.create(
            name='2024/2025', start_date=date(2024, 9, 1), end_date=date(2025, 7, 31), is_current=True,
        )
        cls.terms = {}
        cls.sequences = {}
        for number, name in ((1, 'First Term'), (2, 'Second Term'), (3, 'Third Term')):
            cls.terms[number] = Term.objects.create(academic_year=cls.year, name=name, term_number=number)
        for order in range(1, 7):
            cls.sequences[order] = Sequence.objects.create(
                academic_year=cls.year,
                term=cls.terms[(order + 1) // 2],
                name=f"Sequence {order}",
                order_number=order,
            )

        cls.department = Department.objects.create(name='General Education', code='GEN')
        cls.other_department = Department.objects.create(name='Industrial', code='IND')
        cls.master = Teacher.objects.create(first_name='Paul', last_name='Ndi', staff_id='T-1')
        cls.math_teacher = Teacher.objects.create(
            first_name='Alice', last_name='Ngo', title='MRS', gender='F', staff_id='T-2'
        )
        cls.klass = Class.objects.create(name='Form 1 A', department=cls.department, class_master=cls.master)
        cls.empty_class = Class.objects.create(name='Form 1 B', department=cls.department)

        cls.math = Subject.objects.create(name='Mathematics', code='MATH', coefficient=4, category='general')
        cls.eng = Subject.objects.create(name='English', code='ENG', coefficient=2, category='general')
        cls.elec = Subject.objects.create(name='Electricity', code='ELEC', coefficient=3, category='professional')
        ClassSubject.objects.create(class_assigned=cls.klass, subject=cls.math, teacher=cls.math_teacher)

        cls.alice = Student.objects.create(
            first_name='Alice', last_name='Bello', gender='F', admission_number='a001',
            date_of_birth=date(2010, 5, 4), current_class=cls.klass,
        )
        cls.bruno = Student.objects.create(
            first_name='Bruno', last_name='Tchana', gender='M', admission_number='b002', current_class=cls.klass,
        )
        cls.chantal = Student.objects.create(
            first_name='Chantal', last_name='Eto', gender='F', admission_number='c003', current_class=cls.klass,
        )

        cls.add_mark(cls.chantal, cls.elec, 1, '14')
        cls.add_mark(cls.bruno, cls.math, 2, '10')
        cls.add_mark(cls.alice, cls.math, 1, '16')
        cls.add_mark(cls.alice, cls.math, 2, '18')
        cls.add_mark(cls.alice, cls.eng, 1, '12')
        cls.add_mark(cls.bruno, cls.math, 1, '8')

    @classmethod
    def add_mark(cls, student, subject, sequence, score):
        return Mark.objects.create(
            student=student,
            subject=subject,
            class_assigned=cls.klass,
            academic_year=cls.year,
            term=cls.terms[(sequence + 1) // 2],
            sequence=cls.sequences[sequence],
            score=Decimal(score),
        )

    def scope_params(self, **extra):
        params = {
            'academicYearId': self.year.pk,
            'departmentId': self.department.pk,
            'classId': self.klass.pk,
        }
        params.update(extra)
        return params


class MarkStoreReaderTests(ReportCardDataMixin, TestCase):
    """Tests for reading marks into engine inputs."""

    def test_marks_ordered_by_student_subject_sequence(self):
        raw_marks = fetch_raw_marks(self.year.pk, self.klass.pk)
        self.assertEqual(
            [(m.student.name, m.subject.code, m.sequence_number) for m in raw_marks],
            [
                ('ALICE BELLO', 'ENG', 1),
                ('ALICE BELLO', 'MATH', 1),
                ('ALICE BELLO', 'MATH', 2),
                ('BRUNO TCHANA', 'MATH', 1),
                ('BRUNO TCHANA', 'MATH', 2),
                ('CHANTAL ETO', 'ELEC', 1),
            ],
        )

    def test_projections(self):
        first = fetch_raw_marks(self.year.pk, self.klass.pk)[1]
        self.assertEqual(first.student.registration_number, 'A001')
        self.assertEqual(first.student.class_name, 'FORM 1 A')
        self.assertEqual(first.student.department_name, 'GENERAL EDUCATION')
        self.assertEqual(first.subject.coefficient, 4)
        self.assertEqual(first.teacher_name, 'Mrs. Alice Ngo')
        self.assertEqual(first.term_number, 1)
        self.assertEqual(first.score, Decimal('16.00'))

    def test_grading_bands(self):
        self.assertEqual(fetch_grading_bands(self.year.pk, self.klass.pk), [])
        GradingBand.objects.create(
            academic_year=self.year, class_assigned=self.klass, band_min=10, band_max=20, comment='Good'
        )
        bands = fetch_grading_bands(self.year.pk, self.klass.pk)
        self.assertEqual(len(bands), 1)
        self.assertEqual(bands[0].remark_class, 'remark-good')


class ScopeTests(ReportCardDataMixin, TestCase):
    """Tests for request scope validation."""

    def test_missing_parameters_are_all_named(self):
        with self.assertRaises(MissingParameters) as ctx:
            resolve_scope(None, '', self.klass.pk)
        self.assertIn('academicYearId', ctx.exception.message)
        self.assertIn('departmentId', ctx.exception.message)
        self.assertNotIn('classId', ctx.exception.message)

    def test_unknown_class(self):
        with self.assertRaises(ScopeNotFound) as ctx:
            resolve_scope(self.year.pk, self.department.pk, 9999)
        self.assertIn('classId', ctx.exception.message)

    def test_class_outside_department(self):
        with self.assertRaises(ScopeNotFound):
            resolve_scope(self.year.pk, self.other_department.pk, self.klass.pk)

    def test_non_numeric_id(self):
        with self.assertRaises(InvalidPayload):
            resolve_scope('abc', self.department.pk, self.klass.pk)

    def test_no_marks(self):
        scope = resolve_scope(self.year.pk, self.department.pk, self.empty_class.pk)
        with self.assertRaises(NoMarksFound):
            build_class_report(scope, 'term1')

    def test_build_class_report(self):
        self.addCleanup(cache.clear)
        SchoolSettings.objects.update_or_create(pk=1, defaults={'principal_name': 'Dr. Eko'})
        scope = resolve_scope(self.year.pk, self.department.pk, self.klass.pk)
        report = build_class_report(scope, 'term1')
        alice = report.records[0]
        self.assertEqual(alice.term_totals['term1'].average, 15.3)
        self.assertEqual(alice.term_totals['term1'].rank, 1)
        self.assertEqual(alice.administration.class_master, 'Mr. Paul Ndi')
        self.assertEqual(alice.administration.principal, 'Dr. Eko')
        self.assertEqual(alice.class_statistics.class_average, 12.8)


class ReportCardViewTests(ReportCardDataMixin, TestCase):
    """Tests for the report card endpoints."""

    def setUp(self):
        self.client.force_login(self.user)

    def test_login_required(self):
        self.client.logout()
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params())
        self.assertEqual(response.status_code, 302)

    def test_bulk(self):
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params())
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['count'], 3)
        names = [card['student']['name'] for card in data['reportCards']]
        self.assertEqual(names, ['ALICE BELLO', 'BRUNO TCHANA', 'CHANTAL ETO'])

        alice = data['reportCards'][0]
        self.assertEqual(alice['student']['term'], 'THIRD TERM')
        self.assertEqual(alice['student']['dateOfBirth'], '2010-05-04')
        self.assertEqual(alice['termTotals']['term1'], {'total': 92.0, 'average': 15.3, 'rank': 1, 'outOf': 3})
        self.assertEqual(alice['classStatistics'], {
            'classAverage': 12.8, 'highestAverage': 15.3, 'lowestAverage': 9.0,
        })
        math = next(row for row in alice['generalSubjects'] if row['code'] == 'MATH')
        self.assertEqual(math['scores']['term1Avg'], 17.0)
        self.assertEqual(math['teacher'], 'Mrs. Alice Ngo')
        # Default scope is the third term, which has no marks yet
        self.assertEqual(math['remark'], '')
        self.assertEqual(math['remarkClass'], '')

        eng = next(row for row in alice['generalSubjects'] if row['code'] == 'ENG')
        self.assertEqual(eng['teacher'], 'N/A')
        chantal = data['reportCards'][2]
        self.assertEqual(chantal['professionalSubjects'][0]['code'], 'ELEC')

    def test_bulk_remarks_follow_term(self):
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params(term='first'))
        alice = response.json()['reportCards'][0]
        math = next(row for row in alice['generalSubjects'] if row['code'] == 'MATH')
        self.assertEqual((math['remark'], math['remarkClass']), ('Very Good', 'remark-very-good'))

    def test_bulk_missing_parameters(self):
        response = self.client.get(reverse('reportcards:bulk'), {'classId': self.klass.pk})
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data['status'], 'error')
        self.assertIn('academicYearId', data['message'])
        self.assertIn('departmentId', data['message'])

    def test_bulk_unknown_year(self):
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params(academicYearId=9999))
        self.assertEqual(response.status_code, 404)
        self.assertIn('academicYearId', response.json()['message'])

    def test_bulk_no_marks(self):
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params(classId=self.empty_class.pk))
        self.assertEqual(response.status_code, 404)

    def test_single(self):
        response = self.client.get(reverse('reportcards:single'), self.scope_params(studentId=self.bruno.pk))
        self.assertEqual(response.status_code, 200)
        card = response.json()['reportCard']
        self.assertEqual(card['student']['registrationNumber'], 'B002')
        self.assertEqual(card['termTotals']['term1']['rank'], 3)
        self.assertEqual(card['termTotals']['term1']['outOf'], 3)

    def test_single_student_not_in_report(self):
        outsider = Student.objects.create(
            first_name='Zoe', last_name='Kamga', gender='F', admission_number='z999'
        )
        response = self.client.get(reverse('reportcards:single'), self.scope_params(studentId=outsider.pk))
        self.assertEqual(response.status_code, 404)

    def test_single_missing_student_id(self):
        response = self.client.get(reverse('reportcards:single'), self.scope_params())
        self.assertEqual(response.status_code, 400)
        self.assertIn('studentId', response.json()['message'])

    def test_html(self):
        response = self.client.get(
            reverse('reportcards:bulk_html'),
            self.scope_params(term='t1', schoolName='Lycee de Test', principal='Dr. Override'),
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response['Content-Type'].startswith('text/html'))
        html = response.content.decode()
        self.assertIn('Lycee de Test', html)
        self.assertIn('Dr. Override', html)
        self.assertIn('ALICE BELLO', html)
        self.assertIn('FIRST TERM', html)
        self.assertIn('PROFESSIONAL SUBJECTS', html)
        # Bruno's 9.0 average is highlighted
        self.assertIn('low-score', html)

    def test_html_missing_average_prints_na(self):
        response = self.client.get(reverse('reportcards:bulk_html'), self.scope_params(term='third'))
        self.assertIn('N/A', response.content.decode())

    @mock.patch('reportcards.views.render_pdf', return_value=b'%PDF-1.7 test')
    def test_pdf(self, mock_render):
        response = self.client.get(reverse('reportcards:bulk_pdfs'), self.scope_params())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertEqual(response.content, b'%PDF-1.7 test')
        self.assertIn(
            '2024_2025-General_Education-Form_1_A-ANNUAL-report-cards.pdf',
            response['Content-Disposition'],
        )
        html = mock_render.call_args[0][0]
        self.assertIn('ANNUAL', html)

    @mock.patch('reportcards.views.render_pdf', side_effect=PdfRenderError('renderer crashed'))
    def test_pdf_failure(self, mock_render):
        response = self.client.get(reverse('reportcards:bulk_pdfs'), self.scope_params())
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response['Content-Type'], 'application/json')

    def test_broadsheet(self):
        response = self.client.get(reverse('reportcards:broadsheet'), self.scope_params())
        self.assertEqual(response.status_code, 200)
        wb = openpyxl.load_workbook(io.BytesIO(response.content))
        ws = wb.active
        self.assertEqual(ws.cell(row=3, column=1).value, 'Registration No')
        self.assertEqual(ws.cell(row=4, column=2).value, 'ALICE BELLO')
        self.assertEqual(ws.cell(row=6, column=2).value, 'BRUNO TCHANA')


class PdfRendererTests(TestCase):
    """Tests for the WeasyPrint wrapper."""

    @mock.patch('reportcards.pdf.HTML', side_effect=ValueError('bad html'))
    def test_failure_raises_pdf_error(self, mock_html):
        with self.assertRaises(PdfRenderError):
            render_pdf('<html></html>')

    @mock.patch('reportcards.pdf.HTML')
    def test_returns_bytes(self, mock_html):
        mock_html.return_value.write_pdf.side_effect = lambda buffer: buffer.write(b'%PDF')
        self.assertEqual(render_pdf('<html></html>'), b'%PDF')

    @mock.patch('reportcards.pdf.HTML')
    def test_empty_document_is_an_error(self, mock_html):
        with self.assertRaises(PdfRenderError):
            render_pdf('<html></html>')


class MarkBatchTests(ReportCardDataMixin, TestCase):
    """Tests for the batch mark upsert."""

    def header(self, sequence=3):
        return {
            'academic_year_id': self.year.pk,
            'class_id': self.klass.pk,
            'term_id': self.terms[(sequence + 1) // 2].pk,
            'sequence_id': self.sequences[sequence].pk,
            'subject_id': self.math.pk,
        }

    def test_creates_and_updates(self):
        result = save_marks_batch(self.header(), [
            {'student_id': self.alice.pk, 'score': 15},
            {'student_id': self.bruno.pk, 'score': '11.5'},
        ], uploaded_by=self.user)
        self.assertEqual(result['created'], 2)
        self.assertEqual(result['failed'], 0)

        result = save_marks_batch(self.header(), [{'student_id': self.alice.pk, 'score': 19}])
        self.assertEqual(result['updated'], 1)
        mark = Mark.objects.get(student=self.alice, sequence=self.sequences[3])
        self.assertEqual(mark.score, Decimal('19.00'))

    def test_rejected_batch_rolls_back(self):
        with self.assertRaises(BatchRejected) as ctx:
            save_marks_batch(self.header(), [
                {'student_id': self.alice.pk, 'score': 15},
                {'student_id': self.bruno.pk, 'score': 25},
                {'student_id': 99999, 'score': 10},
            ])
        self.assertEqual(len(ctx.exception.errors), 2)
        self.assertFalse(Mark.objects.filter(sequence=self.sequences[3]).exists())

    def test_commits_at_threshold(self):
        students = [
            Student.objects.create(first_name=f"S{i}", last_name='Test', gender='M', admission_number=f"t{i}")
            for i in range(9)
        ]
        marks = [{'student_id': s.pk, 'score': 12} for s in students]
        marks.append({'student_id': 'bad', 'score': 12})
        result = save_marks_batch(self.header(), marks)
        self.assertEqual(result['created'], 9)
        self.assertEqual(result['failed'], 1)
        self.assertEqual(result['errors'][0]['index'], 9)

    def test_stored_marks_read_once_per_group(self):
        marks = [{'student_id': s.pk, 'score': 12} for s in (self.alice, self.bruno, self.chantal)]
        with mock.patch('reportcards.services._existing_marks', wraps=services._existing_marks) as lookup:
            result = save_marks_batch(self.header(), marks)
        self.assertEqual(lookup.call_count, 1)
        self.assertEqual(result['created'], 3)

        with override_settings(REPORTCARDS_MARK_BATCH_SIZE=2), \
                mock.patch('reportcards.services._existing_marks', wraps=services._existing_marks) as lookup:
            result = save_marks_batch(self.header(), marks)
        self.assertEqual(lookup.call_count, 2)
        self.assertEqual(result['updated'], 3)

    def test_group_query_count_follows_group_size(self):
        marks = [{'student_id': s.pk, 'score': 12} for s in (self.alice, self.bruno, self.chantal)]
        save_marks_batch(self.header(), marks)

        with CaptureQueriesContext(connection) as one_group:
            save_marks_batch(self.header(), marks)
        with override_settings(REPORTCARDS_MARK_BATCH_SIZE=1), CaptureQueriesContext(connection) as three_groups:
            save_marks_batch(self.header(), marks)
        self.assertEqual(len(three_groups.captured_queries) - len(one_group.captured_queries), 2)

    def test_repeated_student_in_group_updates(self):
        result = save_marks_batch(self.header(), [
            {'student_id': self.alice.pk, 'score': 12},
            {'student_id': self.alice.pk, 'score': 14},
        ])
        self.assertEqual((result['created'], result['updated']), (1, 1))
        mark = Mark.objects.get(student=self.alice, sequence=self.sequences[3])
        self.assertEqual(mark.score, Decimal('14.00'))

    def test_score_range(self):
        with self.assertRaises(BatchRejected) as ctx:
            save_marks_batch(self.header(), [
                {'student_id': self.alice.pk, 'score': 20},
                {'student_id': self.bruno.pk, 'score': '20.01'},
            ])
        self.assertEqual(ctx.exception.errors, [{'index': 1, 'error': 'score must be between 0 and 20'}])

    @mock.patch('reportcards.services.time.sleep')
    def test_transient_database_error_is_retried(self, mock_sleep):
        write_mark = services._write_mark
        calls = []

        def flaky_write(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise OperationalError('database is locked')
            return write_mark(*args, **kwargs)

        with mock.patch('reportcards.services._write_mark', side_effect=flaky_write):
            result = save_marks_batch(self.header(), [{'student_id': self.alice.pk, 'score': 15}])

        self.assertEqual(result['created'], 1)
        self.assertEqual(result['failed'], 0)
        self.assertEqual(len(calls), 2)
        mock_sleep.assert_called_once_with(0.05)
        self.assertTrue(Mark.objects.filter(student=self.alice, sequence=self.sequences[3]).exists())

    @mock.patch('reportcards.services.time.sleep')
    def test_persistent_database_error_is_reported(self, mock_sleep):
        students = [
            Student.objects.create(first_name=f"S{i}", last_name='Test', gender='M', admission_number=f"t{i}")
            for i in range(9)
        ]
        marks = [{'student_id': self.alice.pk, 'score': 15}]
        marks += [{'student_id': s.pk, 'score': 12} for s in students]
        write_mark = services._write_mark
        attempts = []

        def failing_for_alice(ids, student_id, *args, **kwargs):
            if student_id == self.alice.pk:
                attempts.append(student_id)
                raise OperationalError('database is locked')
            return write_mark(ids, student_id, *args, **kwargs)

        with mock.patch('reportcards.services._write_mark', side_effect=failing_for_alice):
            result = save_marks_batch(self.header(), marks)

        self.assertEqual(result['created'], 9)
        self.assertEqual(result['errors'], [{'index': 0, 'error': 'Database error while saving mark'}])
        # First attempt plus MARK_MAX_RETRIES retries, backing off exponentially
        self.assertEqual(len(attempts), 4)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [0.05, 0.1, 0.2])
        self.assertFalse(Mark.objects.filter(student=self.alice, sequence=self.sequences[3]).exists())

    def test_missing_header_fields(self):
        header = self.header()
        del header['subject_id']
        with self.assertRaises(MissingParameters) as ctx:
            save_marks_batch(header, [{'student_id': self.alice.pk, 'score': 15}])
        self.assertIn('subject_id', ctx.exception.message)

    def test_empty_marks(self):
        with self.assertRaises(MissingParameters):
            save_marks_batch(self.header(), [])

    def test_sequence_must_belong_to_term(self):
        header = self.header()
        header['sequence_id'] = self.sequences[5].pk
        with self.assertRaises(InvalidPayload):
            save_marks_batch(header, [{'student_id': self.alice.pk, 'score': 15}])

    def test_view(self):
        self.client.force_login(self.user)
        payload = dict(self.header(), marks=[{'student_id': self.alice.pk, 'score': 13}])
        response = self.client.post(
            reverse('reportcards:save_marks'), data=payload, content_type='application/json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['created'], 1)
        self.assertEqual(Mark.objects.get(sequence=self.sequences[3]).uploaded_by, self.user)

    def test_view_rejected_batch(self):
        self.client.force_login(self.user)
        payload = dict(self.header(), marks=[{'student_id': self.alice.pk, 'score': 'abc'}])
        response = self.client.post(
            reverse('reportcards:save_marks'), data=payload, content_type='application/json'
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(len(response.json()['errors']), 1)

    def test_view_invalid_json(self):
        self.client.force_login(self.user)
        response = self.client.post(
            reverse('reportcards:save_marks'), data='{oops', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)


class GradingBandServiceTests(ReportCardDataMixin, TestCase):
    """Tests for replacing a class's grading scale."""

    bands = [
        {'band_min': 0, 'band_max': 9, 'comment': 'Weak'},
        {'band_min': 10, 'band_max': 14, 'comment': 'Average'},
        {'band_min': 15, 'band_max': 20, 'comment': 'Brilliant'},
    ]

    def test_replaces_existing_bands(self):
        GradingBand.objects.create(
            academic_year=self.year, class_assigned=self.klass, band_min=0, band_max=20, comment='Old'
        )
        save_grading_bands(self.year.pk, self.klass.pk, self.bands)
        self.assertEqual(
            list(GradingBand.objects.filter(class_assigned=self.klass).values_list('comment', flat=True)),
            ['Brilliant', 'Average', 'Weak'],
        )

    def test_overlap_rejected(self):
        bands = self.bands + [{'band_min': 14, 'band_max': 16, 'comment': 'Overlap'}]
        with self.assertRaises(InvalidPayload) as ctx:
            save_grading_bands(self.year.pk, self.klass.pk, bands)
        self.assertTrue(ctx.exception.errors)
        self.assertFalse(GradingBand.objects.exists())

    def test_custom_scale_used_for_remarks(self):
        save_grading_bands(self.year.pk, self.klass.pk, self.bands)
        self.client.force_login(self.user)
        response = self.client.get(reverse('reportcards:bulk'), self.scope_params(term='t1'))
        alice = response.json()['reportCards'][0]
        math = next(row for row in alice['generalSubjects'] if row['code'] == 'MATH')
        self.assertEqual((math['remark'], math['remarkClass']), ('Brilliant', ''))
        eng = next(row for row in alice['generalSubjects'] if row['code'] == 'ENG')
        self.assertEqual((eng['remark'], eng['remarkClass']), ('Average', 'remark-average'))

    def test_view(self):
        self.client.force_login(self.user)
        response = self.client.post(
            reverse('reportcards:save_bands'),
            data={'academic_year_id': self.year.pk, 'class_id': self.klass.pk, 'bands': self.bands},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['count'], 3)


class SnapshotTaskTests(ReportCardDataMixin, TestCase):
    """Tests for the Celery tasks."""

    def test_snapshot_task_stores_one_per_student(self):
        result = snapshot_class_report_cards(self.year.pk, self.klass.pk, 'first', self.user.pk)
        self.assertTrue(result['success'])
        self.assertEqual(result['count'], 3)
        snapshot = ReportCardSnapshot.objects.get(student=self.alice)
        self.assertEqual(snapshot.term_scope, 'term1')
        self.assertEqual(snapshot.generated_by, self.user)
        self.assertEqual(snapshot.data['termTotals']['term1']['average'], 15.3)

        # A second run replaces the snapshots of the same scope
        snapshot_class_report_cards(self.year.pk, self.klass.pk, 'first')
        self.assertEqual(ReportCardSnapshot.objects.filter(term_scope='term1').count(), 3)

    def test_snapshot_task_without_marks(self):
        result = snapshot_class_report_cards(self.year.pk, self.empty_class.pk)
        self.assertFalse(result['success'])

    def test_queue_view(self):
        self.client.force_login(self.user)
        with mock.patch('reportcards.tasks.snapshot_class_report_cards.delay') as mock_delay:
            mock_delay.return_value.id = 'task-123'
            response = self.client.post(
                reverse('reportcards:snapshots'),
                data=self.scope_params(term='second'),
                content_type='application/json',
            )
        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json()['task_id'], 'task-123')
        mock_delay.assert_called_once_with(self.year.pk, self.klass.pk, 'term2', self.user.pk)

    def test_zip_export_collects_failures(self):
        media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)

        def fake_pdf(html):
            if 'BRUNO TCHANA' in html:
                raise PdfRenderError('renderer crashed')
            return b'%PDF'

        with override_settings(MEDIA_ROOT=media_root), \
                mock.patch('reportcards.tasks.render_pdf', side_effect=fake_pdf), \
                mock.patch.object(export_class_reports_zip, 'update_state'):
            result = export_class_reports_zip(self.year.pk, self.klass.pk, 'annual')

        self.assertTrue(result['success'])
        self.assertEqual(result['total'], 3)
        self.assertEqual(len(result['errors']), 1)
        with zipfile.ZipFile(f"{media_root}/{result['filename']}") as zf:
            self.assertEqual(
                sorted(zf.namelist()),
                ['report_card_A001.pdf', 'report_card_C003.pdf'],
            )
