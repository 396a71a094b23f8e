"""
SQL Query Module for the consultant redirect service.

Provides the parameterized PostgreSQL statements used by
PostgresRedirectStore, keeping SQL text out of the service layer.

Example usage:
    from consultant_redirect.sql import get_active_roster_query

    rows = await conn.fetch(get_active_roster_query(), "whatsapp")
"""

from consultant_redirect.sql.redirect_queries import (
    get_active_roster_query,
    get_touch_last_used_query,
    get_increment_usage_query,
    get_roster_totals_query,
    get_lead_counts_for_day_query,
    get_insert_reservation_query,
    get_confirm_reservation_query,
    get_reservation_by_token_query,
    get_confirmed_count_for_day_query,
)

__all__ = [
    # Roster
    'get_active_roster_query',
    'get_touch_last_used_query',
    'get_increment_usage_query',
    'get_roster_totals_query',
    # Daily activity
    'get_lead_counts_for_day_query',
    # Reservations
    'get_insert_reservation_query',
    'get_confirm_reservation_query',
    'get_reservation_by_token_query',
    'get_confirmed_count_for_day_query',
]
