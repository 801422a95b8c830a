from django.dispatch import receiver

from .registry import TenantRegistry
from .signals import switch_database
from .tenant_context import TenantContext
from .utils import bind_tenant_database


@receiver(switch_database, dispatch_uid="django_tenantdb.activate_tenant_database")
def activate_tenant_database(sender, tenant_id, **kwargs):
    """
    Retarget the ORM to the tenant database identified by ``tenant_id``.

    Binds the tenant's ``DATABASES`` entry and pushes its alias onto the
    context-local TenantContext. The alias is returned so the sender can use it
    explicitly instead of reading ambient state.
    """
    record = TenantRegistry().get(tenant_id)
    db_alias = bind_tenant_database(record)
    TenantContext.push_db_alias(db_alias)
    return db_alias
