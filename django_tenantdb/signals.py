from django.dispatch import Signal

# Sent with ``tenant_id`` before a schema diff/apply. Receivers run
# synchronously, retarget the ORM to that tenant and return the alias.
switch_database = Signal()

# Sent with ``record`` after the physical operation succeeded
tenant_database_created = Signal()

# Sent with ``record`` and ``applied`` (whether any schema statement ran)
tenant_database_migrated = Signal()

# Sent with ``db_name``; the registry row is left untouched
tenant_database_dropped = Signal()
