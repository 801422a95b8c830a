from django.db import models
from django.utils import timezone

from .dsn import build_tenant_dsn
from .enums import DatabaseStatus, DriverType


class TimestampedModel(models.Model):
    """
    Adds ``created_at`` / ``updated_at``.

    The timestamps are not filled by model callbacks; whoever persists the
    instance calls ``touch()`` first (the tenant registry does this on every
    write).
    """

    created_at = models.DateTimeField(null=True, blank=True, editable=False)
    updated_at = models.DateTimeField(null=True, blank=True, editable=False)

    class Meta:
        abstract = True

    def touch(self, now=None):
        now = now or timezone.now()
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now
        return self


class TenantDbConfigMixin(models.Model):
    """
    Connection settings and lifecycle status of one tenant database.

    Every credential field is optional; unset fields fall back to the base
    connection URL and then to hard defaults (see ``django_tenantdb.dsn``).
    """

    db_name = models.CharField(max_length=255, unique=True)
    driver_type = models.CharField(max_length=32, choices=DriverType.choices, default=DriverType.SQLSERVER)
    db_user_name = models.CharField(max_length=255, null=True, blank=True, default=None)
    db_password = models.CharField(max_length=255, null=True, blank=True, default=None)
    db_host = models.CharField(max_length=255, null=True, blank=True, default=None)
    db_port = models.CharField(max_length=5, null=True, blank=True, default=None)
    database_status = models.CharField(
        max_length=32,
        choices=DatabaseStatus.choices,
        default=DatabaseStatus.NOT_CREATED,
        db_index=True,
    )

    class Meta:
        abstract = True

    def __str__(self):
        return self.db_name

    @property
    def alias(self) -> str:
        """Connection alias the tenant database is registered under in ``settings.DATABASES``."""
        return self.db_name

    def get_dsn_url(self) -> str:
        return build_tenant_dsn(self)


class TenantDatabase(TenantDbConfigMixin, TimestampedModel):
    class Meta:
        verbose_name = "tenant database"
        verbose_name_plural = "tenant databases"
        ordering = ("created_at", "id")
