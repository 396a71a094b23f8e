"""
Reservation token lifecycle: issue on selection, confirm once, or let expire.

A reservation is a redirect_logs row holding an opaque 256-bit token. It is
created with status issued and a fixed time-to-live, and is mutated at most
once, when the visitor's browser confirms it after opening WhatsApp. Nothing
here ever deletes or sweeps reservations; expiry is a timestamp comparison
made at confirmation time.

Failure kinds (see core.exceptions):
- NoConsultantAvailable: no active consultant and no backup number
- MissingConfirmationFields: token or number absent
- InvalidToken: unknown token, or another platform/number
- TokenAlreadyUsed: second confirmation of the same token
- TokenExpired: confirmation after expires_at
"""

import logging
import random
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from consultant_redirect.core.config import Settings
from consultant_redirect.core.exceptions import (
    InvalidToken,
    MissingConfirmationFields,
    NoConsultantAvailable,
    TokenAlreadyUsed,
    TokenExpired,
)
from consultant_redirect.models.enums import ReservationStatus
from consultant_redirect.models.schemas import (
    ConfirmedReservation,
    IssuedReservation,
    Reservation,
)
from consultant_redirect.services.selection import resolve_platform, select_consultant
from consultant_redirect.services.store import RedirectStore


logger = logging.getLogger(__name__)

# 32 random bytes -> 64 hex characters
TOKEN_BYTES: int = 32


def generate_token() -> str:
    """Return a fresh unguessable reservation token."""
    return secrets.token_hex(TOKEN_BYTES)


def _short(token: str) -> str:
    return f"{token[:8]}..."


# =============================================================================
# Issuance
# =============================================================================


async def issue_reservation(
    store: RedirectStore,
    settings: Settings,
    platform: Optional[str] = None,
    ip_origem: Optional[str] = None,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> IssuedReservation:
    """
    Select a consultant for ``platform`` and hand out a reservation token.

    When the platform has no active consultant, the configured backup number
    (platform-specific first, then the global default) is handed out under a
    reservation with no consultant, so confirmation and auditing stay uniform.

    Side effects: one reservation insert, plus a last-used stamp on the chosen
    consultant. The rotation fields of the roster are never written.

    Args:
        store: Roster, activity and reservation persistence.
        settings: TTL, default platform, backup numbers, business timezone.
        platform: Caller's platform tag; blank means the configured default.
        ip_origem: Requester IP, stored for diagnostics only.
        user_agent: Requester user agent, stored for diagnostics only.
        now: Current time, injectable for tests. Defaults to UTC now.
        rng: Random source for the selection tie-break.

    Returns:
        IssuedReservation with the number to contact and the token.

    Raises:
        NoConsultantAvailable: If no consultant and no backup number exist.
    """
    resolved = resolve_platform(platform, settings.redirect_default_platform)
    now = now or datetime.now(timezone.utc)

    consultant = await select_consultant(store, store, settings, resolved, now=now, rng=rng)

    if consultant is not None:
        numero = consultant.numero
    else:
        numero = settings.backup_number_for(resolved)
        if not numero:
            logger.warning(f"No consultant and no backup number for platform={resolved}")
            raise NoConsultantAvailable()
        logger.info(f"Using backup number for platform={resolved}")

    ttl_minutes = settings.redirect_token_ttl_minutes
    reservation = Reservation(
        token=generate_token(),
        platform=resolved,
        numero=numero,
        consultant_id=consultant.id if consultant else None,
        status=ReservationStatus.ISSUED,
        issued_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
        ip_origem=ip_origem,
        user_agent=user_agent,
    )

    if consultant is not None:
        await store.touch_last_used(consultant.id, now)
    reservation = await store.insert_reservation(reservation)

    logger.info(
        f"Issued reservation {_short(reservation.token)} on {resolved} "
        f"consultant={reservation.consultant_id} expires_at={reservation.expires_at.isoformat()}"
    )

    return IssuedReservation(
        numero=numero,
        platform=resolved,
        consultant=consultant,
        token=reservation.token,
        expires_at=reservation.expires_at,
        ttl_minutes=ttl_minutes,
    )


# =============================================================================
# Confirmation
# =============================================================================


async def _diagnose_failed_confirmation(
    store: RedirectStore,
    token: str,
    numero: str,
    platform: str,
    now: datetime,
) -> Exception:
    """
    Work out why the conditional confirmation matched no row.

    Checked in order: unknown token (or mismatched platform/number), already
    confirmed, expired.
    """
    reservation = await store.get_reservation(token)

    if reservation is None or reservation.platform != platform:
        return InvalidToken()
    if reservation.numero is not None and reservation.numero != numero:
        return InvalidToken()
    if reservation.status == ReservationStatus.CONFIRMED:
        return TokenAlreadyUsed()
    if reservation.effective_status(now) == ReservationStatus.EXPIRED:
        return TokenExpired()

    # Issued and valid on re-read: a concurrent request confirmed it first
    # or the row changed between the two statements.
    return TokenAlreadyUsed()


async def confirm_reservation(
    store: RedirectStore,
    settings: Settings,
    token: Optional[str],
    numero: Optional[str],
    platform: Optional[str] = None,
    lead_data: Any = None,
    now: Optional[datetime] = None,
) -> ConfirmedReservation:
    """
    Confirm that the visitor used the reservation.

    The status change, the lead payload and the consultant's usage increment
    happen in a single conditional write (issued and expires_at > now), so of
    any number of concurrent confirmations exactly one succeeds.

    Args:
        store: Reservation persistence.
        settings: Supplies the default platform.
        token: Token from the issuance response.
        numero: Number the visitor was sent to.
        platform: Platform tag; blank means the configured default.
        lead_data: Caller-supplied lead payload, stored verbatim.
        now: Current time, injectable for tests. Defaults to UTC now.

    Returns:
        ConfirmedReservation with the confirmation timestamp.

    Raises:
        MissingConfirmationFields: If token or number is missing.
        InvalidToken: If the token does not exist for this platform/number.
        TokenAlreadyUsed: If the token was already confirmed.
        TokenExpired: If the token's expiry has passed.
    """
    token = (token or '').strip()
    numero = (numero or '').strip()
    if not token or not numero:
        logger.warning("Confirmation rejected: token or number missing")
        raise MissingConfirmationFields()

    resolved = resolve_platform(platform, settings.redirect_default_platform)
    now = now or datetime.now(timezone.utc)

    confirmed = await store.confirm_issued(token, resolved, numero, lead_data, now)
    if confirmed is None:
        error = await _diagnose_failed_confirmation(store, token, numero, resolved, now)
        logger.warning(
            f"Confirmation of {_short(token)} on {resolved} rejected: {type(error).__name__}"
        )
        raise error

    logger.info(
        f"Confirmed reservation {_short(token)} on {resolved} "
        f"consultant={confirmed.consultant_id}"
    )
    return confirmed
