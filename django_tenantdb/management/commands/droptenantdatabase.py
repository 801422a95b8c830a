from django.core.management.base import BaseCommand, CommandError

from django_tenantdb.exceptions import TenantDatabaseError
from django_tenantdb.services import DatabaseLifecycleService


class Command(BaseCommand):
    help = "Drop a tenant database from its server. The registry record is left as is."

    def add_arguments(self, parser):
        parser.add_argument("db_name", help="Name of the database to drop.")
        parser.add_argument(
            "--noinput",
            "--no-input",
            action="store_false",
            dest="interactive",
            help="Do not prompt for confirmation.",
        )

    def handle(self, *args, **options):
        db_name = options["db_name"]

        if options["interactive"]:
            confirm = input(
                f"This will permanently delete database '{db_name}' and all of its data.\n"
                "Type 'yes' to continue, or 'no' to cancel: "
            )
            if confirm != "yes":
                self.stdout.write(self.style.WARNING("Drop cancelled."))
                return

        try:
            DatabaseLifecycleService().drop_database(db_name)
        except TenantDatabaseError as e:
            raise CommandError(str(e)) from e

        self.stdout.write(self.style.SUCCESS(f"Database '{db_name}' dropped."))
