"""
Provision One Tenant Database

Registers ``db_name`` in the tenant registry (if needed), creates the physical
database when the record is still NOT_CREATED, and applies the tenant schema.
Re-running the command for the same name is safe.

Usage:
    ```bash
    python manage.py createtenantdatabase tenant7
    python manage.py createtenantdatabase tenant7 --driver=postgresql --host=db2.local --port=5432
    python manage.py createtenantdatabase tenant7 --no-migrate
    ```
"""

from django.core.management.base import BaseCommand, CommandError

from django_tenantdb.enums import DriverType
from django_tenantdb.exceptions import TenantDatabaseError
from django_tenantdb.services import DatabaseLifecycleService


class Command(BaseCommand):
    help = "Onboard, create and migrate a tenant database."

    def add_arguments(self, parser):
        parser.add_argument("db_name", help="Logical (and physical) name of the tenant database.")
        parser.add_argument("--driver", choices=DriverType.values, help="Database server driver.")
        parser.add_argument("--host", help="Database server host override.")
        parser.add_argument("--port", help="Database server port override.")
        parser.add_argument("--user", help="Database user override.")
        parser.add_argument("--password", help="Database password override.")
        parser.add_argument(
            "--no-migrate",
            action="store_false",
            dest="migrate",
            help="Create the database but do not apply the tenant schema.",
        )

    def handle(self, *args, **options):
        db_name = options["db_name"]
        overrides = {
            field: options[option]
            for field, option in (
                ("driver_type", "driver"),
                ("db_host", "host"),
                ("db_port", "port"),
                ("db_user_name", "user"),
                ("db_password", "password"),
            )
            if options.get(option)
        }

        service = DatabaseLifecycleService()
        self.stdout.write(self.style.MIGRATE_HEADING(f"Provisioning tenant database: {db_name}"))
        try:
            record = service.provision_database(db_name, migrate=options["migrate"], **overrides)
        except TenantDatabaseError as e:
            raise CommandError(f"Provisioning '{db_name}' failed: {e}") from e

        self.stdout.write(
            self.style.SUCCESS(
                f"Tenant database '{record.db_name}' (id={record.pk}) is {record.get_database_status_display()}."
            )
        )
