"""
FastAPI dependency injection module for the redirect service.

Route handlers never build stores or read settings themselves; they declare
these dependencies, which tests replace through ``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_redirect_store / RedirectStoreDep: a RedirectStore over the shared pool

Usage Examples:
    @router.get("/next-redirect")
    async def next_redirect(
        store: RedirectStoreDep,
        settings: SettingsDep,
    ) -> dict:
        issued = await issue_reservation(store, settings)
        ...

    # In tests
    app.dependency_overrides[get_redirect_store] = lambda: in_memory_store
"""

from typing import Annotated

from fastapi import Depends

from consultant_redirect.core.config import Settings, get_settings
from consultant_redirect.core.database import get_db_pool
from consultant_redirect.services.store import PostgresRedirectStore, RedirectStore


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so FastAPI's dependency override
    mechanism can swap it in tests:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# =============================================================================
# Store Dependency
# =============================================================================

async def get_redirect_store() -> RedirectStore:
    """
    Return a PostgreSQL-backed RedirectStore over the shared pool.

    The store is a thin wrapper; connections are acquired per statement and
    released immediately, so nothing needs closing when the request ends.

    Raises:
        StoreUnavailable: If the pool cannot be created.
    """
    pool = await get_db_pool()
    return PostgresRedirectStore(pool)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(store: RedirectStoreDep)
RedirectStoreDep = Annotated[RedirectStore, Depends(get_redirect_store)]
