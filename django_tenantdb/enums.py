from django.db import models


class DriverType(models.TextChoices):
    """Database server flavours a tenant database can live on. Values double as DSN schemes."""

    MYSQL = "mysql", "MySQL"
    POSTGRESQL = "postgresql", "PostgreSQL"
    SQLSERVER = "sqlsrv", "SQL Server"


class DatabaseStatus(models.TextChoices):
    NOT_CREATED = "DATABASE_NOT_CREATED", "Not created"
    CREATED = "DATABASE_CREATED", "Created"
    MIGRATED = "DATABASE_MIGRATED", "Migrated"

    @property
    def rank(self) -> int:
        # Lifecycle order; a record only ever moves to a higher rank
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [DatabaseStatus.NOT_CREATED, DatabaseStatus.CREATED, DatabaseStatus.MIGRATED]
