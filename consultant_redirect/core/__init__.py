"""
Core infrastructure package for the redirect service.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- Domain exceptions mapped to HTTP responses
- FastAPI dependency injection utilities

Re-exports the key components so other modules can write:

    from consultant_redirect.core import get_settings, RedirectStoreDep

Components Re-exported:
    Settings / get_settings: Pydantic settings class and its cached singleton
    init_db / close_db / get_db_pool: Connection pool lifecycle
    RedirectError and subclasses: Client-facing failures
    get_settings_dependency / SettingsDep: Settings injection
    get_redirect_store / RedirectStoreDep: Store injection
"""

# Import order matters: dependencies pulls in the services package, which
# itself imports config and exceptions from here.
from consultant_redirect.core.config import Settings, get_settings

from consultant_redirect.core.exceptions import (
    RedirectError,
    NoConsultantAvailable,
    MissingConfirmationFields,
    InvalidToken,
    TokenAlreadyUsed,
    TokenExpired,
    StoreUnavailable,
)

from consultant_redirect.core.database import init_db, close_db, get_db_pool

from consultant_redirect.core.dependencies import (
    get_settings_dependency,
    get_redirect_store,
    SettingsDep,
    RedirectStoreDep,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Exceptions (from exceptions.py)
    'RedirectError',
    'NoConsultantAvailable',
    'MissingConfirmationFields',
    'InvalidToken',
    'TokenAlreadyUsed',
    'TokenExpired',
    'StoreUnavailable',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_redirect_store',
    'SettingsDep',
    'RedirectStoreDep',
]
