from django.test import TestCase

from students.models import Student


class StudentModelTests(TestCase):
    """Tests for the Student model."""

    def _create_student(self, **kwargs):
        defaults = {
            'first_name': 'Marie',
            'last_name': 'Fotso',
            'gender': 'F',
            'admission_number': 'STU-001',
        }
        defaults.update(kwargs)
        return Student.objects.create(**defaults)

    def test_full_name(self):
        student = self._create_student()
        self.assertEqual(student.full_name, 'Marie Fotso')

    def test_full_name_with_other_names(self):
        student = self._create_student(other_names='Claire')
        self.assertEqual(student.full_name, 'Marie Claire Fotso')

    def test_str_includes_admission_number(self):
        student = self._create_student()
        self.assertEqual(str(student), 'Marie Fotso (STU-001)')

    def test_date_of_birth_optional(self):
        student = self._create_student()
        self.assertIsNone(student.date_of_birth)
