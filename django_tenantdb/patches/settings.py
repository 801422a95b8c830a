from django.conf import settings
from django.db import router

TENANT_ROUTER = "django_tenantdb.routers.TenantDatabaseRouter"


def patch_django_settings():
    current_routers = list(getattr(settings, "DATABASE_ROUTERS", []))
    if TENANT_ROUTER in current_routers:
        return

    current_routers.append(TENANT_ROUTER)
    settings.DATABASE_ROUTERS = current_routers

    # ConnectionRouter caches the router list on first use
    router.__dict__.pop("routers", None)


patch_django_settings()
