from django.apps import AppConfig


class ReportcardsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reportcards'
    verbose_name = 'Report Cards'
