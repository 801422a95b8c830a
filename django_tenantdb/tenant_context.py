"""
Active tenant database tracking.

The active alias is the ORM routing target for tenant-app models. It is kept
as a stack in a ``ContextVar``, so each thread and each asyncio task sees its
own value: a schema sync for one tenant can not retarget queries running for
another tenant on a different worker.

Usage:
    ```python
    from django_tenantdb.tenant_context import TenantContext

    with TenantContext.use_database("tenant7"):
        Invoice.objects.count()   # runs against tenant7
    ```
"""

from contextlib import contextmanager
from contextvars import ContextVar

_db_alias_stack: ContextVar[tuple[str, ...]] = ContextVar("tenantdb_alias_stack", default=())


class TenantContext:
    @staticmethod
    def get_db_alias() -> str | None:
        stack = _db_alias_stack.get()
        return stack[-1] if stack else None

    @staticmethod
    def push_db_alias(db_alias: str) -> None:
        _db_alias_stack.set(_db_alias_stack.get() + (db_alias,))

    @staticmethod
    def pop_db_alias() -> str | None:
        stack = _db_alias_stack.get()
        if not stack:
            return None
        _db_alias_stack.set(stack[:-1])
        return stack[-1]

    @staticmethod
    def snapshot() -> tuple[str, ...]:
        return _db_alias_stack.get()

    @staticmethod
    def restore(state: tuple[str, ...]) -> None:
        _db_alias_stack.set(state)

    @classmethod
    @contextmanager
    def use_database(cls, db_alias: str):
        state = cls.snapshot()
        cls.push_db_alias(db_alias)
        try:
            yield db_alias
        finally:
            cls.restore(state)
