from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import Person
from core.choices import PersonTitle as Title


class Teacher(Person):
    """
    A member of teaching staff. Printed on report cards as subject teacher
    and, through Class.class_master, as the class master.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    # Link to User account
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='teacher_profile',
        help_text="Associated user account for login"
    )

    title = models.CharField(
        max_length=10,
        choices=Title.choices,
        default=Title.MR
    )
    staff_id = models.CharField(max_length=20, unique=True, help_text="Unique Employee ID")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['last_name', 'first_name']
        verbose_name = "Teacher"
        verbose_name_plural = "Teachers"

    def __str__(self):
        return f"{self.get_title_display()} {self.full_name}"

    @property
    def display_name(self):
        """Name as printed on a report card, falling back to the login email."""
        if self.full_name.strip():
            return str(self)
        if self.user_id:
            return self.user.email
        return ''
