"""
Enumeration definitions for the consultant redirect service.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in API responses and compare equal to the raw values stored in PostgreSQL.
"""

from enum import Enum
from typing import Optional


class Platform(str, Enum):
    """
    Inbound channel a visitor arrives from.

    Consultants are registered for exactly one platform and selection never
    crosses platforms.
    """
    WHATSAPP = "whatsapp"
    GOOGLE = "google"
    META = "meta"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Platform"]:
        """Return the member for a case/whitespace-insensitive tag, or None."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ReservationStatus(str, Enum):
    """
    Lifecycle of a redirect_logs row.

    Values are the ones already stored in the redirect_logs table:
    - ISSUED: token handed to the visitor, awaiting confirmation
    - CONFIRMED: visitor reached the consultant; terminal
    - EXPIRED: issued and past its expiry; derived at read time, never written
    """
    ISSUED = "consultado"
    CONFIRMED = "confirmado"
    EXPIRED = "expirado"
