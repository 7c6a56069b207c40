from django.db import models
from django.utils.translation import gettext_lazy as _

class Gender(models.TextChoices):
    MALE = 'M', _('Male')
    FEMALE = 'F', _('Female')

class PersonTitle(models.TextChoices):
    MR = 'MR', _('Mr.')
    MRS = 'MRS', _('Mrs.')
    MS = 'MS', _('Ms.')
    DR = 'DR', _('Dr.')
    REV = 'REV', _('Rev.')
    PROF = 'PROF', _('Prof.')

class SubjectCategory(models.TextChoices):
    """Report-card section a subject is listed under."""
    GENERAL = 'general', _('General')
    PROFESSIONAL = 'professional', _('Professional')
    PRACTICAL = 'practical', _('Practical')

    @classmethod
    def parse(cls, value):
        """
        Map a stored or raw category value to a member.
        Anything unknown (including None) is listed with the practical subjects.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.PRACTICAL
