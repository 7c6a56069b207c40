"""
Configuration settings for the reportcards app.

These values can be overridden in Django settings by prefixing with REPORTCARDS_.
For example, to change MARK_BATCH_SIZE:
    REPORTCARDS_MARK_BATCH_SIZE = 100

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a reportcards setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'REPORTCARDS_{name}', default)


_DEFAULTS = {
    # Term scope used by the print endpoints when none is given
    'DEFAULT_PRINT_TERM': 'annual',
    # Term scope used by the JSON endpoints when none is given
    'DEFAULT_JSON_TERM': 'term3',

    # Batch mark upsert
    'MARK_BATCH_SIZE': 50,
    'MARK_MAX_RETRIES': 3,
    'MARK_RETRY_BACKOFF': 0.05,  # seconds, doubled per attempt
    'MARK_COMMIT_THRESHOLD': 0.9,

    # Export settings
    'EXCEL_HEADER_COLOR': '4F46E5',
    'EXPORT_DIR': 'exports',

    # Celery task settings
    'TASK_MAX_RETRIES': 3,
    'TASK_RETRY_DELAY': 60,  # seconds

    # Printed when SchoolSettings has no principal
    'PRINCIPAL_NAME': '',
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    This avoids Django setup issues during module import.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


_config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
