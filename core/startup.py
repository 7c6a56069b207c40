"""
Schema readiness checks run once, before the application serves traffic.

Nothing in the request path creates or syncs tables; a deployment runs
``manage.py wait_for_db --check-schema`` (or ``manage.py check --deploy
--database default``) and refuses to start on an incomplete schema.
"""
import logging

from django.apps import apps
from django.db import connections

logger = logging.getLogger(__name__)

# Models the report-card pipeline reads or writes.
REQUIRED_MODELS = [
    'core.AcademicYear',
    'core.Term',
    'core.Sequence',
    'core.SchoolSettings',
    'academics.Department',
    'academics.Class',
    'academics.Subject',
    'academics.ClassSubject',
    'teachers.Teacher',
    'students.Student',
    'reportcards.Mark',
    'reportcards.GradingBand',
    'reportcards.ReportCardSnapshot',
]


def required_tables():
    """Database table names backing REQUIRED_MODELS."""
    return [apps.get_model(label)._meta.db_table for label in REQUIRED_MODELS]


def missing_tables(using='default'):
    """Return the required tables that do not exist in the given database."""
    connection = connections[using]
    with connection.cursor() as cursor:
        existing = set(connection.introspection.table_names(cursor))
    missing = [table for table in required_tables() if table not in existing]
    if missing:
        logger.warning(f"Database '{using}' is missing tables: {', '.join(missing)}")
    return missing
