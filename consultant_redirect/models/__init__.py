"""
Package initialization file for redirect models.

Re-exports the enums and Pydantic schemas so other modules can import them
from consultant_redirect.models directly.

Usage:
    from consultant_redirect.models import Consultant, Platform, Reservation
"""

from consultant_redirect.models.enums import (
    Platform,
    ReservationStatus,
)

from consultant_redirect.models.schemas import (
    RowId,
    Consultant,
    ConsultantLoad,
    Reservation,
    IssuedReservation,
    ConfirmedReservation,
    RosterTotals,
    TodayBalance,
    ConfirmRedirectRequest,
)


__all__ = [
    # Enums
    'Platform',
    'ReservationStatus',
    # Domain models
    'RowId',
    'Consultant',
    'ConsultantLoad',
    'Reservation',
    # Service results
    'IssuedReservation',
    'ConfirmedReservation',
    'RosterTotals',
    'TodayBalance',
    # Requests
    'ConfirmRedirectRequest',
]
