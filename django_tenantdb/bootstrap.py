from importlib import import_module

from django.core.exceptions import ImproperlyConfigured
from django.db.models import Model

from .conf import settings
from .constants import constants
from .dsn import get_url_driver, parse_connection_url
from .enums import DriverType
from .exceptions import MalformedUrlError
from .utils import get_tenant_database_model


class _BootStrapper:
    """
    Bootstrap orchestrator for django-tenantdb initialization.

    Called from ``TenantDbConfig.ready()`` so configuration errors stop the
    application at startup instead of surfacing during the first provisioning
    run.

    Lifecycle:
        1. _parse: collect built-in and configured patch modules
        2. _run_validation: validate TENANTDB_CONFIG
        3. _run_patches: import patch modules
        4. _connect_receivers: register the default signal receivers

    Error Handling:
        Every validation error raises ImproperlyConfigured with the offending
        configuration key.
    """

    def __init__(self):
        self._patches: list[str] = [
            "django_tenantdb.patches.settings",
        ]

    def _parse(self):
        patches = settings.PATCHES

        if not isinstance(patches, (list, tuple)):
            raise ImproperlyConfigured(
                f"TENANTDB_CONFIG['{constants.PATCHES}'] must be a list of patch module paths."
            )

        for patch in patches:
            if patch not in self._patches:
                self._patches.append(patch)

    def _run_validation(self) -> None:
        """
        Validate TENANTDB_CONFIG.

        Validations:
            TENANT_DATABASE_MODEL:
            - Must reference an installed model ("app_label.ModelName")
            - Must be a Django Model subclass
            CONTROL_DB_ALIAS:
            - Must be a key of DATABASES
            BASE_DATABASE_URL:
            - When set, must parse (scheme, host and database name) and name a
              supported driver
            DEFAULT_DRIVER:
            - Must be one of the supported drivers
            TENANT_APPS:
            - Must be a list or tuple
        """
        model_path = settings.TENANT_DATABASE_MODEL
        try:
            model = get_tenant_database_model()
        except (LookupError, ValueError):
            raise ImproperlyConfigured(
                f"Could not find tenant database model '{model_path}'. "
                f"Check TENANTDB_CONFIG['{constants.TENANT_DATABASE_MODEL}'] in settings.py."
            )

        if not issubclass(model, Model):
            raise ImproperlyConfigured(f"{model_path} is not a valid Django model.")

        if settings.CONTROL_DB_ALIAS not in settings.DATABASES:
            raise ImproperlyConfigured(
                f"TENANTDB_CONFIG['{constants.CONTROL_DB_ALIAS}'] = '{settings.CONTROL_DB_ALIAS}' "
                f"is not defined in DATABASES."
            )

        if settings.BASE_DATABASE_URL:
            try:
                parse_connection_url(settings.BASE_DATABASE_URL)
                get_url_driver(settings.BASE_DATABASE_URL)
            except MalformedUrlError as exc:
                raise ImproperlyConfigured(
                    f"TENANTDB_CONFIG['{constants.BASE_DATABASE_URL}'] is invalid: {exc}"
                ) from exc

        if settings.DEFAULT_DRIVER not in DriverType.values:
            raise ImproperlyConfigured(
                f"TENANTDB_CONFIG['{constants.DEFAULT_DRIVER}'] must be one of: {', '.join(DriverType.values)}"
            )

        if not isinstance(settings.TENANTDB_CONFIG.get(constants.TENANT_APPS, []), (list, tuple)):
            raise ImproperlyConfigured(f"TENANTDB_CONFIG['{constants.TENANT_APPS}'] must be a list of app labels.")

    def _run_patches(self):
        for patch in self._patches:
            try:
                import_module(patch)
            except ImportError as e:
                raise ImproperlyConfigured(f"Unable to import patch module {patch} due to: {e}") from e

    def _connect_receivers(self):
        import_module("django_tenantdb.receivers")

    def run(self):
        self._parse()
        self._run_validation()
        self._run_patches()
        self._connect_receivers()


app_bootstrapper = _BootStrapper()
