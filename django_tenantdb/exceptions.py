"""
Error taxonomy for tenant database provisioning.

Driver errors never escape this package: they are caught at the schema manager
or lifecycle service boundary and re-raised as one of the classes below with
the original exception chained as ``__cause__``.
"""


class TenantDatabaseError(Exception):
    """Base class. ``code`` keeps the underlying driver error code, if any."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.message = message
        self.code = code


class MalformedUrlError(TenantDatabaseError):
    """The base connection URL lacks a scheme, host or database path."""


class DatabaseCreationError(TenantDatabaseError):
    """The server rejected CREATE DATABASE (already exists, no privilege, ...)."""

    def __init__(self, db_name: str, message: str, code=None):
        super().__init__(f"Unable to create database {db_name}: {message}", code)
        self.db_name = db_name


class TenantNotFoundError(TenantDatabaseError):
    """A database was requested that is absent from the server catalog."""

    def __init__(self, db_name: str, message: str | None = None, code=None):
        super().__init__(message or f"Database {db_name} does not exist.", code)
        self.db_name = db_name


class DatabaseNotFoundError(TenantNotFoundError):
    """Raised by the schema manager's pre-drop existence guard."""


class TenantProvisioningError(TenantDatabaseError):
    """Generic wrapper for unexpected failures while provisioning a tenant database."""


class NoDefaultTenantError(TenantDatabaseError):
    """No tenant database in the CREATED state when exactly one was expected."""


def get_error_code(exc: BaseException):
    """
    Best-effort extraction of a driver error code.

    Django wraps driver exceptions in ``django.db.utils`` classes and chains
    the original, so both the exception and its cause are inspected:
    psycopg exposes ``pgcode`` / ``sqlstate``; MySQLdb and pyodbc put the
    code in ``args[0]``.
    """
    for candidate in (exc, exc.__cause__):
        if candidate is None:
            continue
        for attr in ("pgcode", "sqlstate", "code"):
            value = getattr(candidate, attr, None)
            if value:
                return value
        args = getattr(candidate, "args", ())
        if len(args) > 1 and isinstance(args[0], (int, str)):
            return args[0]
    return None
