import time

from django.core.management.base import BaseCommand, CommandError
from django.db import connections
from django.db.utils import OperationalError

from core.startup import missing_tables


class Command(BaseCommand):
    help = 'Wait for database to be available (and optionally fully migrated)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--timeout',
            type=int,
            default=60,
            help='Maximum time to wait in seconds (default: 60)'
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=1,
            help='Seconds between retry attempts (default: 1)'
        )
        parser.add_argument(
            '--database',
            default='default',
            help='Database alias to check (default: default)'
        )
        parser.add_argument(
            '--check-schema',
            action='store_true',
            help='Fail unless every table the report cards need exists'
        )

    def handle(self, *args, **options):
        timeout = options['timeout']
        interval = options['interval']
        alias = options['database']

        self.stdout.write('Waiting for database to be available...')

        start_time = time.time()
        attempts = 0

        while True:
            attempts += 1
            elapsed = int(time.time() - start_time)
            try:
                with connections[alias].cursor() as cursor:
                    cursor.execute('SELECT 1')
                break
            except OperationalError as e:
                if elapsed >= timeout:
                    self.stdout.write(
                        self.style.ERROR(
                            f'Database connection timeout after {timeout}s ({attempts} attempts)'
                        )
                    )
                    raise CommandError(f'Last error: {e}') from e

                self.stdout.write(
                    f'   Database unavailable (attempt {attempts}, {elapsed}s/{timeout}s)'
                )
                time.sleep(interval)
                # Drop the broken connection so the next attempt reconnects
                connections[alias].close()

        self.stdout.write(
            self.style.SUCCESS(f'Database available! (took {elapsed}s, {attempts} attempts)')
        )

        if options['check_schema']:
            missing = missing_tables(alias)
            if missing:
                raise CommandError(
                    f"Schema incomplete, missing tables: {', '.join(missing)}. "
                    "Run 'python manage.py migrate' first."
                )
            self.stdout.write(self.style.SUCCESS('Schema ready.'))
