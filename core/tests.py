from datetime import date
from io import StringIO
from unittest import mock

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase

from core.checks import schema_ready_check
from core.choices import SubjectCategory
from core.models import AcademicYear, Term, Sequence, SchoolSettings
from core import startup


class SubjectCategoryTests(SimpleTestCase):
    """Tests for parsing free-form category values."""

    def test_known_values(self):
        self.assertEqual(SubjectCategory.parse('general'), SubjectCategory.GENERAL)
        self.assertEqual(SubjectCategory.parse('Professional'), SubjectCategory.PROFESSIONAL)
        self.assertEqual(SubjectCategory.parse(' PRACTICAL '), SubjectCategory.PRACTICAL)

    def test_unknown_and_missing_fall_back_to_practical(self):
        self.assertEqual(SubjectCategory.parse('sports'), SubjectCategory.PRACTICAL)
        self.assertEqual(SubjectCategory.parse(None), SubjectCategory.PRACTICAL)
        self.assertEqual(SubjectCategory.parse(''), SubjectCategory.PRACTICAL)


class AcademicYearModelTests(TestCase):
    """Tests for the AcademicYear model."""

    def _create_year(self, **kwargs):
        defaults = {
            'name': '2024/2025',
            'start_date': date(2024, 9, 1),
            'end_date': date(2025, 7, 31),
            'is_current': False,
        }
        defaults.update(kwargs)
        return AcademicYear.objects.create(**defaults)

    def test_create_academic_year(self):
        ay = self._create_year()
        self.assertEqual(str(ay), '2024/2025')

    def test_only_one_current(self):
        ay1 = self._create_year(is_current=True)
        ay2 = self._create_year(
            name='2025/2026',
            start_date=date(2025, 9, 1),
            end_date=date(2026, 7, 31),
            is_current=True,
        )
        ay1.refresh_from_db()
        self.assertFalse(ay1.is_current)
        self.assertTrue(ay2.is_current)

    def test_get_current(self):
        self._create_year(is_current=True)
        current = AcademicYear.get_current()
        self.assertIsNotNone(current)
        self.assertTrue(current.is_current)

    def test_get_current_none(self):
        self.assertIsNone(AcademicYear.get_current())


class TermAndSequenceModelTests(TestCase):
    """Tests for the Term and Sequence models."""

    def setUp(self):
        self.ay = AcademicYear.objects.create(
            name='2024/2025',
            start_date=date(2024, 9, 1),
            end_date=date(2025, 7, 31),
        )
        self.term = Term.objects.create(academic_year=self.ay, name='First Term', term_number=1)

    def test_str(self):
        self.assertEqual(str(self.term), 'First Term - 2024/2025')

    def test_unique_term_number_per_year(self):
        with self.assertRaises(IntegrityError):
            Term.objects.create(academic_year=self.ay, name='Another First', term_number=1)

    def test_sequences_ordered_by_order_number(self):
        Sequence.objects.create(academic_year=self.ay, term=self.term, name='Sequence 2', order_number=2)
        Sequence.objects.create(academic_year=self.ay, term=self.term, name='Sequence 1', order_number=1)
        self.assertEqual(
            list(self.term.sequences.values_list('order_number', flat=True)),
            [1, 2],
        )

    def test_unique_sequence_order_per_year(self):
        Sequence.objects.create(academic_year=self.ay, term=self.term, name='Sequence 1', order_number=1)
        with self.assertRaises(IntegrityError):
            Sequence.objects.create(academic_year=self.ay, term=self.term, name='Dup', order_number=1)


class SchoolSettingsModelTests(TestCase):
    """Tests for the SchoolSettings singleton model."""

    def setUp(self):
        cache.clear()

    def test_load_creates_if_not_exists(self):
        settings = SchoolSettings.load()
        self.assertIsNotNone(settings)
        self.assertEqual(SchoolSettings.objects.count(), 1)

    def test_singleton_pk_is_always_1(self):
        settings = SchoolSettings(display_name='Other')
        settings.save()
        self.assertEqual(settings.pk, 1)
        self.assertEqual(SchoolSettings.objects.count(), 1)

    def test_save_invalidates_cache(self):
        SchoolSettings.load()
        SchoolSettings(display_name='Lycee Bilingue').save()
        self.assertEqual(SchoolSettings.load().display_name, 'Lycee Bilingue')


class SchemaReadinessTests(TestCase):
    """Tests for the startup schema checks."""

    def test_migrated_database_has_no_missing_tables(self):
        self.assertEqual(startup.missing_tables(), [])

    def test_required_tables_cover_marks(self):
        self.assertIn('reportcards_mark', startup.required_tables())

    def test_check_skipped_without_databases(self):
        self.assertEqual(schema_ready_check(None), [])

    def test_check_reports_missing_tables(self):
        with mock.patch('core.checks.missing_tables', return_value=['reportcards_mark']):
            errors = schema_ready_check(None, databases=['default'])
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].id, 'core.E001')
        self.assertIn('reportcards_mark', errors[0].msg)


class WaitForDbCommandTests(TestCase):
    """Tests for the wait_for_db management command."""

    def test_database_ready(self):
        out = StringIO()
        call_command('wait_for_db', stdout=out)
        self.assertIn('Database available', out.getvalue())

    def test_check_schema_passes(self):
        out = StringIO()
        call_command('wait_for_db', '--check-schema', stdout=out)
        self.assertIn('Schema ready', out.getvalue())

    def test_check_schema_fails_on_missing_tables(self):
        with mock.patch(
            'core.management.commands.wait_for_db.missing_tables',
            return_value=['reportcards_mark'],
        ):
            with self.assertRaises(CommandError):
                call_command('wait_for_db', '--check-schema', stdout=StringIO())
