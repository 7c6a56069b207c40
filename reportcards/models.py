from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from .engine import MAX_SCORE, MIN_SCORE


class Mark(models.Model):
    """
    A student's score (0-20) in one subject for one sequence.
    At most one mark exists per (student, subject, class, year, term, sequence).
    """
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    subject = models.ForeignKey(
        'academics.Subject',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    academic_year = models.ForeignKey(
        'core.AcademicYear',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    term = models.ForeignKey(
        'core.Term',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    sequence = models.ForeignKey(
        'core.Sequence',
        on_delete=models.CASCADE,
        related_name='marks',
    )
    score = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal(MIN_SCORE)), MaxValueValidator(Decimal(MAX_SCORE))],
        help_text='Score out of 20'
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='uploaded_marks',
    )
    uploaded_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['student', 'subject', 'sequence']
        verbose_name = 'Mark'
        verbose_name_plural = 'Marks'
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'subject', 'class_assigned', 'academic_year', 'term', 'sequence'],
                name='unique_mark_per_sequence',
            ),
        ]
        indexes = [
            models.Index(fields=['academic_year', 'class_assigned'], name='mark_year_class_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.subject.code} seq {self.sequence.order_number}: {self.score}"


class GradingBand(models.Model):
    """
    Custom remark band for a class in an academic year, e.g. 14-16 "Good".
    Classes without bands use the default six-band scale.
    """
    academic_year = models.ForeignKey(
        'core.AcademicYear',
        on_delete=models.CASCADE,
        related_name='grading_bands',
    )
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='grading_bands',
    )
    band_min = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(MAX_SCORE)],
        help_text='Lowest average in this band (inclusive)'
    )
    band_max = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(MAX_SCORE)],
        help_text='Highest average in this band (inclusive)'
    )
    comment = models.CharField(
        max_length=100,
        help_text='Remark printed for averages in this band, e.g. Very Good'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['academic_year', 'class_assigned', '-band_min']
        verbose_name = 'Grading Band'
        verbose_name_plural = 'Grading Bands'
        unique_together = ['academic_year', 'class_assigned', 'band_min', 'band_max']

    def __str__(self):
        return f"{self.band_min}-{self.band_max}: {self.comment}"

    def clean(self):
        if self.band_max is not None and self.band_min is not None and self.band_max < self.band_min:
            raise ValidationError('Maximum must be greater than or equal to minimum')


class TermScope(models.TextChoices):
    TERM1 = 'term1', _('First Term')
    TERM2 = 'term2', _('Second Term')
    TERM3 = 'term3', _('Third Term')
    ANNUAL = 'annual', _('Annual')


class ReportCardSnapshot(models.Model):
    """
    Frozen copy of a student's aggregated report card, kept so a printed
    card can be reproduced after marks change.
    """
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='report_snapshots',
    )
    academic_year = models.ForeignKey(
        'core.AcademicYear',
        on_delete=models.CASCADE,
        related_name='report_snapshots',
    )
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='report_snapshots',
    )
    term_scope = models.CharField(
        max_length=10,
        choices=TermScope.choices,
        default=TermScope.ANNUAL,
    )
    data = models.JSONField(help_text='Report card as returned by the single endpoint')
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='report_snapshots',
    )
    generated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-generated_at']
        verbose_name = 'Report Card Snapshot'
        verbose_name_plural = 'Report Card Snapshots'
        indexes = [
            models.Index(fields=['academic_year', 'class_assigned', 'term_scope'], name='snapshot_scope_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.get_term_scope_display()} ({self.academic_year})"
