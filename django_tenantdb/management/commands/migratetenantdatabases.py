"""
Create and Migrate All Tenant Databases

Django management command that walks the tenant registry and moves every
tenant database forward in its lifecycle.

Command Flow:
    1. NOT_CREATED records: create the physical database, mark CREATED
    2. CREATED records: apply the tenant schema (if anything is pending),
       mark MIGRATED
    3. MIGRATED records (only with --all): apply new migrations, if any

Error Handling:
    - Each tenant is handled independently
    - A failure is reported and the command moves on to the next tenant
    - The command exits with an error when at least one tenant failed, so
      deployment pipelines notice

Usage:
    ```bash
    # Create missing databases and migrate new ones
    python manage.py migratetenantdatabases

    # Also bring already migrated tenants up to date
    python manage.py migratetenantdatabases --all

    # Only create databases, do not touch schemas
    python manage.py migratetenantdatabases --skip-migrate
    ```
"""

from django.core.management.base import BaseCommand, CommandError

from django_tenantdb.exceptions import TenantDatabaseError
from django_tenantdb.services import DatabaseLifecycleService


class Command(BaseCommand):
    help = "Create NOT_CREATED tenant databases and apply the tenant schema to CREATED ones."

    def add_arguments(self, parser):
        parser.add_argument(
            "--all",
            action="store_true",
            dest="include_migrated",
            help="Also apply pending migrations to tenant databases that are already MIGRATED.",
        )
        parser.add_argument(
            "--skip-migrate",
            action="store_true",
            help="Only create missing databases; do not synchronize schemas.",
        )

    def handle(self, *args, **options):
        service = DatabaseLifecycleService()
        failures = []

        for record in service.get_list_of_not_created_databases():
            self.stdout.write(self.style.MIGRATE_HEADING(f"Creating tenant database: {record.db_name}"))
            try:
                service.provision_database(record.db_name, migrate=False)
            except TenantDatabaseError as e:
                failures.append(record.db_name)
                self.stdout.write(self.style.ERROR(f"Creating '{record.db_name}' failed: {e}"))
                continue
            self.stdout.write(self.style.SUCCESS(f"Tenant database '{record.db_name}' created."))

        if options["skip_migrate"]:
            self._finish(failures)
            return

        records = service.get_list_of_new_created_databases()
        if options["include_migrated"]:
            records += service.get_list_of_tenant_databases()

        for record in records:
            self.stdout.write(self.style.MIGRATE_HEADING(f"Migrating tenant database: {record.db_name}"))
            try:
                applied = service.migrate_database(record)
            except TenantDatabaseError as e:
                failures.append(record.db_name)
                self.stdout.write(self.style.ERROR(f"Migrations failed for '{record.db_name}': {e}"))
                continue

            if applied:
                self.stdout.write(self.style.SUCCESS(f"Tenant database '{record.db_name}' migrated."))
            else:
                self.stdout.write(f"  No schema changes for '{record.db_name}'; schema is up to date.")

        self._finish(failures)

    def _finish(self, failures):
        if failures:
            raise CommandError(f"{len(failures)} tenant database(s) failed: {', '.join(failures)}")
