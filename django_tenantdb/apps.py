from django.apps import AppConfig


class TenantDbConfig(AppConfig):
    name = "django_tenantdb"
    verbose_name = "Tenant databases"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from .bootstrap import app_bootstrapper

        app_bootstrapper.run()
