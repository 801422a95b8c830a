"""
List Tenant Databases

Django management command for inspecting the tenant database registry.

Output Formats:
    - table (default): Human-readable table
    - json: Structured JSON for integration with other tools
    - csv: CSV format for spreadsheets or data pipelines

Supported Filters:
    --status: Only show records in the given lifecycle state
              (DATABASE_NOT_CREATED, DATABASE_CREATED, DATABASE_MIGRATED)

Usage:
    ```bash
    python manage.py showtenantdatabases
    python manage.py showtenantdatabases --status=DATABASE_CREATED
    python manage.py showtenantdatabases --format=json
    ```

Notes:
    Passwords are never printed. The DSN column shows the server-level
    connection string with the password masked.
"""

import csv
import json

from django.core.management.base import BaseCommand, CommandError

from django_tenantdb.dsn import build_tenant_dsn
from django_tenantdb.enums import DatabaseStatus
from django_tenantdb.registry import TenantRegistry


class Command(BaseCommand):
    help = "List tenant databases with their lifecycle status"

    def add_arguments(self, parser):
        parser.add_argument(
            "--status",
            type=str,
            help="Filter by lifecycle status (DATABASE_NOT_CREATED, DATABASE_CREATED, DATABASE_MIGRATED).",
        )
        parser.add_argument(
            "--format",
            type=str,
            choices=["table", "json", "csv"],
            default="table",
            help="Output format (default: table).",
        )

    def handle(self, *args, **options):
        registry = TenantRegistry()

        status = options.get("status")
        if status:
            status = status.upper()
            if status not in DatabaseStatus.values:
                raise CommandError(f"Invalid status. Valid options: {', '.join(DatabaseStatus.values)}")
            records = registry.find_by(database_status=status)
        else:
            records = registry.find_by()

        if not records:
            self.stdout.write(self.style.WARNING("No tenant databases found."))
            return

        output_format = options.get("format")
        if output_format == "json":
            self._output_json(records)
        elif output_format == "csv":
            self._output_csv(records)
        else:
            self._output_table(records)

    @staticmethod
    def _masked_dsn(record):
        dsn = build_tenant_dsn(record)
        if record.db_password:
            dsn = dsn.replace(f":{record.db_password}@", ":****@", 1)
        return dsn

    @staticmethod
    def _created(record, fmt=None):
        if record.created_at is None:
            return ""
        return record.created_at.strftime(fmt) if fmt else record.created_at.isoformat()

    def _output_table(self, records):
        self.stdout.write(self.style.SUCCESS(f"\nFound {len(records)} tenant database(s):\n"))

        header = f"{'ID':<6} {'Database':<30} {'Driver':<12} {'Status':<22} {'Created':<20}"
        self.stdout.write(self.style.SUCCESS(header))
        self.stdout.write(self.style.SUCCESS("-" * len(header)))

        for record in records:
            created = self._created(record, "%Y-%m-%d %H:%M:%S") or "N/A"
            self.stdout.write(
                f"{record.pk:<6} {record.db_name:<30} {record.driver_type:<12} "
                f"{record.database_status:<22} {created:<20}"
            )
            if record.db_host or record.db_user_name:
                self.stdout.write(self.style.WARNING(f"       └─ Server: {self._masked_dsn(record)}"))

    def _output_json(self, records):
        data = [
            {
                "id": record.pk,
                "db_name": record.db_name,
                "driver_type": record.driver_type,
                "database_status": record.database_status,
                "db_host": record.db_host,
                "db_port": record.db_port,
                "db_user_name": record.db_user_name,
                "created_at": self._created(record) or None,
            }
            for record in records
        ]
        self.stdout.write(json.dumps(data, indent=2))

    def _output_csv(self, records):
        writer = csv.writer(self.stdout, lineterminator="\n")
        writer.writerow(["ID", "DB Name", "Driver", "Status", "Host", "Port", "Created At"])
        for record in records:
            writer.writerow(
                [
                    record.pk,
                    record.db_name,
                    record.driver_type,
                    record.database_status,
                    record.db_host or "",
                    record.db_port or "",
                    self._created(record),
                ]
            )
