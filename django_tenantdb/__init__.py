"""Per-tenant database provisioning, schema synchronization and routing for Django."""

__version__ = "0.1.0"
