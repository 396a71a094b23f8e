"""
Redirect Services Module

Business logic for routing inbound visitors to sales consultants. Each service
is a set of stateless async functions that receive their store and settings
explicitly; all coordination state lives in PostgreSQL.

Services:
- store: Roster / activity / reservation interfaces and the PostgreSQL store
- selection: Least-loaded-today consultant selection with random tie-break
- reservations: Token issuance and single-use confirmation
- balance: Daily fairness snapshot for dashboards

All services are consumed by the API layer (consultant_redirect/api/).
"""

# =============================================================================
# Store Exports
# =============================================================================

from consultant_redirect.services.store import (
    RosterStore,
    ActivityCounter,
    ReservationStore,
    RedirectStore,
    PostgresRedirectStore,
)

# =============================================================================
# Selection Exports
# =============================================================================

from consultant_redirect.services.selection import (
    resolve_platform,
    normalize_matching_key,
    aggregate_daily_counts,
    business_day,
    load_today_counts,
    pick_least_loaded,
    select_consultant,
)

# =============================================================================
# Reservation Exports
# =============================================================================

from consultant_redirect.services.reservations import (
    generate_token,
    issue_reservation,
    confirm_reservation,
)

# =============================================================================
# Balance Exports
# =============================================================================

from consultant_redirect.services.balance import (
    summarize_loads,
    get_today_balance,
)


__all__ = [
    # Store
    'RosterStore',
    'ActivityCounter',
    'ReservationStore',
    'RedirectStore',
    'PostgresRedirectStore',
    # Selection
    'resolve_platform',
    'normalize_matching_key',
    'aggregate_daily_counts',
    'business_day',
    'load_today_counts',
    'pick_least_loaded',
    'select_consultant',
    # Reservations
    'generate_token',
    'issue_reservation',
    'confirm_reservation',
    # Balance
    'summarize_loads',
    'get_today_balance',
]
