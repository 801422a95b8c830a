from .conf import settings
from .tenant_context import TenantContext
from .utils import APP_LABEL, get_tenant_apps


class TenantDatabaseRouter:
    """
    Routes tenant-app models to the active tenant database.

    - The registry app always lives on the control alias.
    - Tenant apps (TENANT_APPS, or every non-control app when unset) follow
      TenantContext; with no active tenant the router has no opinion and
      Django falls back to ``default``.
    - Every other app is left to the next router.
    """

    def _control_labels(self) -> set[str]:
        return {APP_LABEL, settings.TENANT_DATABASE_MODEL.split(".")[0]}

    def _is_tenant_app(self, app_label: str) -> bool:
        return app_label in get_tenant_apps()

    def db_for_read(self, model, **hints):
        app_label = model._meta.app_label
        if app_label in self._control_labels():
            return settings.CONTROL_DB_ALIAS

        if self._is_tenant_app(app_label):
            return TenantContext.get_db_alias()

        return None

    def db_for_write(self, model, **hints):
        return self.db_for_read(model, **hints)

    def allow_relation(self, obj1, obj2, **hints):
        db1 = self.db_for_read(obj1._meta.model)
        db2 = self.db_for_read(obj2._meta.model)
        if db1 is None or db2 is None:
            return None
        return db1 == db2

    def allow_migrate(self, db, app_label, model_name=None, **hints):
        is_control_db = db == settings.CONTROL_DB_ALIAS

        if app_label in self._control_labels():
            return is_control_db

        if self._is_tenant_app(app_label):
            return not is_control_db

        return None
