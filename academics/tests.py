from django.db import IntegrityError
from django.test import TestCase

from academics.models import Department, Class, Subject, ClassSubject
from core.choices import SubjectCategory
from teachers.models import Teacher


class AcademicsModelTests(TestCase):
    """Tests for departments, classes and subject allocations."""

    def setUp(self):
        self.department = Department.objects.create(name='General Education', code='GEN')
        self.teacher = Teacher.objects.create(
            first_name='Alice', last_name='Ngo', title='MRS', gender='F', staff_id='T-100'
        )

    def test_class_master_name(self):
        klass = Class.objects.create(name='Form 1 A', department=self.department, class_master=self.teacher)
        self.assertEqual(klass.class_master_name, 'Mrs. Alice Ngo')

    def test_class_master_name_empty_without_master(self):
        klass = Class.objects.create(name='Form 1 B', department=self.department)
        self.assertEqual(klass.class_master_name, '')

    def test_class_fields(self):
        fields = {f.name for f in Class._meta.concrete_fields}
        self.assertEqual(
            fields,
            {'id', 'name', 'department', 'class_master', 'created_at', 'updated_at'},
        )

    def test_class_name_unique_per_department(self):
        Class.objects.create(name='Form 1 A', department=self.department)
        with self.assertRaises(IntegrityError):
            Class.objects.create(name='Form 1 A', department=self.department)

    def test_subject_defaults(self):
        subject = Subject.objects.create(name='Mathematics', code='MATH')
        self.assertEqual(subject.coefficient, 1)
        self.assertEqual(subject.category, SubjectCategory.GENERAL)
        self.assertEqual(str(subject), 'MATH - Mathematics')

    def test_class_subject_unique_pair(self):
        klass = Class.objects.create(name='Form 2 A', department=self.department)
        subject = Subject.objects.create(name='Physics', code='PHY', coefficient=3)
        ClassSubject.objects.create(class_assigned=klass, subject=subject, teacher=self.teacher)
        with self.assertRaises(IntegrityError):
            ClassSubject.objects.create(class_assigned=klass, subject=subject)
