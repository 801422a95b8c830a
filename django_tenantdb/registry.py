"""
Tenant database registry.

The registry owns persistence of tenant database records. Every read and
write goes to the control database alias; callers never hold a record longer
than one operation.
"""

import logging

from django.db import IntegrityError, transaction

from .conf import settings
from .enums import DatabaseStatus
from .exceptions import NoDefaultTenantError
from .utils import get_tenant_database_model

logger = logging.getLogger(__name__)


class TenantRegistry:
    def __init__(self, model=None, using: str | None = None):
        self.model = model or get_tenant_database_model()
        self.using = using or settings.CONTROL_DB_ALIAS

    @property
    def objects(self):
        return self.model._default_manager.using(self.using)

    # Repository capability
    # =====================

    def find_one_by(self, **filters):
        return self.objects.filter(**filters).order_by("created_at", "pk").first()

    def find_by(self, **filters) -> list:
        return list(self.objects.filter(**filters).order_by("created_at", "pk"))

    def get(self, tenant_id):
        """Load a record by primary key; raises ``model.DoesNotExist`` when absent."""
        return self.objects.get(pk=tenant_id)

    def persist(self, record):
        """Insert or update ``record``; timestamps are refreshed on every write."""
        record.touch()
        record.save(using=self.using)
        return record

    # Onboarding
    # ==========

    def onboard(self, db_name: str) -> int:
        """
        Lookup-or-create a record for ``db_name`` and return its id.

        An existing record is returned untouched. The lookup is only a fast
        path; the unique constraint on ``db_name`` is what prevents duplicates,
        so losing an insert race falls back to reading the winner's row.
        """
        if not db_name:
            raise ValueError("db_name must be a non-empty string")

        existing = self.find_one_by(db_name=db_name)
        if existing is not None:
            return existing.pk

        record = self.model(
            db_name=db_name,
            driver_type=settings.DEFAULT_DRIVER,
            database_status=DatabaseStatus.NOT_CREATED,
        )
        try:
            with transaction.atomic(using=self.using):
                self.persist(record)
        except IntegrityError:
            existing = self.find_one_by(db_name=db_name)
            if existing is None:
                raise
            return existing.pk

        logger.info("Onboarded tenant database %s (id=%s)", db_name, record.pk)
        return record.pk

    # Status
    # ======

    def advance_status(self, record, status: DatabaseStatus):
        """
        Move ``record`` forward to ``status`` and persist it.

        Requests that would keep or lower the current status are ignored, so
        the lifecycle never regresses.
        """
        current = DatabaseStatus(record.database_status)
        target = DatabaseStatus(status)
        if target.rank <= current.rank:
            logger.debug("Tenant database %s already %s; not moving to %s", record.db_name, current, target)
            return record

        record.database_status = target
        self.persist(record)
        logger.info("Tenant database %s: %s -> %s", record.db_name, current.label, target.label)
        return record

    def list_by_status(self, status: DatabaseStatus) -> list:
        return self.find_by(database_status=status)

    def get_default(self):
        """
        The CREATED record acting as default tenant database.

        Ties are broken by earliest ``created_at`` then lowest id.

        Raises:
            NoDefaultTenantError: no record is in the CREATED state.
        """
        candidates = self.objects.filter(database_status=DatabaseStatus.CREATED).order_by("created_at", "pk")
        records = list(candidates[:2])
        if not records:
            raise NoDefaultTenantError("No tenant database in the CREATED state.")
        if len(records) > 1:
            logger.warning(
                "More than one tenant database is CREATED; using %s as the default", records[0].db_name
            )
        return records[0]
