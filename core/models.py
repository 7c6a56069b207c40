from django.core.cache import cache
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from .choices import Gender


class Person(models.Model):
    """
    Abstract Person model shared by staff records.
    """
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    middle_name = models.CharField(max_length=50, blank=True, default='')

    gender = models.CharField(
        max_length=1,
        choices=Gender.choices,
        default=Gender.MALE
    )
    date_of_birth = models.DateField(null=True, blank=True)

    # Contact
    phone_number = models.CharField(max_length=17, blank=True)
    email = models.EmailField(blank=True, null=True)

    class Meta:
        abstract = True

    @property
    def full_name(self):
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(filter(None, parts))

    def __str__(self):
        return self.full_name


class AcademicYear(models.Model):
    """
    Represents an academic year (e.g., 2024/2025).
    """
    name = models.CharField(
        max_length=50,
        help_text="e.g., 2024/2025"
    )
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(
        default=False,
        help_text="Only one academic year can be current at a time"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-start_date']
        verbose_name = "Academic Year"
        verbose_name_plural = "Academic Years"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Ensure only one academic year is current
        if self.is_current:
            AcademicYear.objects.filter(is_current=True).exclude(pk=self.pk).update(is_current=False)
        super().save(*args, **kwargs)

    @classmethod
    def get_current(cls):
        """Get the current academic year."""
        return cls.objects.filter(is_current=True).first()


class Term(models.Model):
    """
    One of the three terms of an academic year.
    Each term groups two sequences.
    """
    TERM_NUMBER_CHOICES = [
        (1, 'First'),
        (2, 'Second'),
        (3, 'Third'),
    ]

    academic_year = models.ForeignKey(
        AcademicYear,
        on_delete=models.CASCADE,
        related_name='terms'
    )
    name = models.CharField(
        max_length=50,
        help_text="e.g., First Term"
    )
    term_number = models.PositiveSmallIntegerField(
        choices=TERM_NUMBER_CHOICES,
        default=1,
    )
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['academic_year', 'term_number']
        verbose_name = "Term"
        verbose_name_plural = "Terms"
        unique_together = ['academic_year', 'term_number']

    def __str__(self):
        return f"{self.name} - {self.academic_year.name}"


class Sequence(models.Model):
    """
    The smallest graded period. Six per academic year, numbered 1-6,
    with sequences 2n-1 and 2n belonging to term n.
    """
    academic_year = models.ForeignKey(
        AcademicYear,
        on_delete=models.CASCADE,
        related_name='sequences'
    )
    term = models.ForeignKey(
        Term,
        on_delete=models.CASCADE,
        related_name='sequences'
    )
    name = models.CharField(
        max_length=50,
        help_text="e.g., Sequence 1"
    )
    order_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(6)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['academic_year', 'order_number']
        verbose_name = "Sequence"
        verbose_name_plural = "Sequences"
        unique_together = ['academic_year', 'order_number']

    def __str__(self):
        return f"{self.name} - {self.academic_year.name}"


class SchoolSettings(models.Model):
    """
    Singleton holding the school identity printed on report cards.
    """
    logo = models.ImageField(upload_to='school_logos/', blank=True, null=True)
    display_name = models.CharField(max_length=100, blank=True)
    motto = models.CharField(max_length=200, blank=True)
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    principal_name = models.CharField(max_length=100, blank=True)

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)
        cache.delete('school_profile')

    @classmethod
    def load(cls):
        profile = cache.get('school_profile')
        if profile is None:
            profile, created = cls.objects.get_or_create(pk=1)
            cache.set('school_profile', profile, 60*60*24)
        return profile

    class Meta:
        verbose_name = "School Settings"
        verbose_name_plural = "School Settings"

    def __str__(self):
        return "School Profile & Settings"
