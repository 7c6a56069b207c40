from django.contrib.auth import get_user_model
from django.test import TestCase

from teachers.models import Teacher

User = get_user_model()


class TeacherModelTests(TestCase):
    """Tests for the Teacher model."""

    def _create_teacher(self, **kwargs):
        defaults = {
            'first_name': 'Jean',
            'last_name': 'Mbarga',
            'gender': 'M',
            'staff_id': 'TCH-001',
        }
        defaults.update(kwargs)
        return Teacher.objects.create(**defaults)

    def test_create_teacher(self):
        teacher = self._create_teacher()
        self.assertEqual(teacher.status, Teacher.Status.ACTIVE)

    def test_full_name(self):
        teacher = self._create_teacher(middle_name='Paul')
        self.assertEqual(teacher.full_name, 'Jean Paul Mbarga')

    def test_str_includes_title(self):
        teacher = self._create_teacher(title='DR')
        self.assertEqual(str(teacher), 'Dr. Jean Mbarga')

    def test_display_name(self):
        teacher = self._create_teacher()
        self.assertEqual(teacher.display_name, 'Mr. Jean Mbarga')

    def test_display_name_falls_back_to_user_email(self):
        user = User.objects.create_user(email='teacher@school.test', password='pass')
        teacher = self._create_teacher(first_name='', last_name='', user=user)
        self.assertEqual(teacher.display_name, 'teacher@school.test')
