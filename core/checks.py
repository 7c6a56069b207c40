from django.core.checks import Error, Tags, register

from .startup import missing_tables


@register(Tags.database, deploy=True)
def schema_ready_check(app_configs, databases=None, **kwargs):
    """Report required tables that have not been migrated yet."""
    errors = []
    for alias in databases or []:
        missing = missing_tables(alias)
        if missing:
            errors.append(Error(
                f"Database '{alias}' is missing required tables: {', '.join(missing)}",
                hint="Run 'python manage.py migrate' before starting the server.",
                id='core.E001',
            ))
    return errors
