from django.core.validators import MinValueValidator
from django.db import models

from core.choices import SubjectCategory
from teachers.models import Teacher


class Department(models.Model):
    """
    A department (option) grouping classes, e.g. General Education,
    Industrial, Commercial. Printed as the student's option on report cards.
    """
    name = models.CharField(
        max_length=100,
        help_text="e.g., General Education, Electricity"
    )
    code = models.CharField(
        max_length=10,
        unique=True,
        help_text="e.g., GEN, ELEC"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Department"
        verbose_name_plural = "Departments"

    def __str__(self):
        return self.name


class Class(models.Model):
    """
    Represents a class/classroom grouping of students within a department.
    """
    name = models.CharField(
        max_length=50,
        help_text="e.g., Form 1 A, Lower Sixth Science"
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='classes'
    )
    class_master = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='mastered_classes',
        help_text="Teacher responsible for this class; signs the report cards."
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['department', 'name']
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        unique_together = ['department', 'name']

    def __str__(self):
        return self.name

    @property
    def class_master_name(self):
        return self.class_master.display_name if self.class_master else ''


class Subject(models.Model):
    """
    Represents a subject taught at the school.
    The coefficient weights the subject in term totals; the category decides
    which section of the report card lists it.
    """
    name = models.CharField(
        max_length=100,
        help_text="e.g., Mathematics, English Language, Technical Drawing"
    )
    code = models.CharField(
        max_length=20,
        unique=True,
        help_text="e.g., MATH, ENG, TD"
    )
    coefficient = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text="Weight of the subject in averages"
    )
    category = models.CharField(
        max_length=20,
        choices=SubjectCategory.choices,
        default=SubjectCategory.GENERAL
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['category', 'code']
        verbose_name = "Subject"
        verbose_name_plural = "Subjects"

    def __str__(self):
        return f"{self.code} - {self.name}"


class ClassSubject(models.Model):
    """
    Links a Class to a Subject and assigns a specific Teacher.
    Example: 'Mr. Ndi' teaches 'Mathematics' to 'Form 2 B'.
    """
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='subjects'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='class_allocations'
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subject_assignments'
    )

    class Meta:
        unique_together = ['class_assigned', 'subject']
        verbose_name = "Subject Allocation"
        verbose_name_plural = "Subject Allocations"

    def __str__(self):
        return f"{self.subject.name} - {self.class_assigned.name}"
