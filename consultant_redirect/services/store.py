"""
Store interfaces consumed by the redirect services, and their PostgreSQL implementation.

The selection and reservation logic never talks to the database directly.
It depends on three narrow collaborators:

- RosterStore: active consultants per platform, last-used stamp, roster totals
- ActivityCounter: leads attributed per raw key on a calendar day
- ReservationStore: append-only reservation log plus the conditional
  confirmation write

RedirectStore bundles the three because the confirmation must bump the
consultant's usage counter in the same transaction as the status change.
PostgresRedirectStore implements it over an asyncpg pool; the test suite
provides an in-memory implementation of the same interface.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from asyncpg import Pool

from consultant_redirect.models.enums import ReservationStatus
from consultant_redirect.models.schemas import (
    ConfirmedReservation,
    Consultant,
    Reservation,
    RosterTotals,
    RowId,
)
from consultant_redirect.sql import (
    get_active_roster_query,
    get_confirm_reservation_query,
    get_confirmed_count_for_day_query,
    get_increment_usage_query,
    get_insert_reservation_query,
    get_lead_counts_for_day_query,
    get_reservation_by_token_query,
    get_roster_totals_query,
    get_touch_last_used_query,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Interfaces
# =============================================================================


class RosterStore(ABC):
    """Source of truth for consultants eligible for redirects."""

    @abstractmethod
    async def list_active_consultants(self, platform: str) -> List[Consultant]:
        """Return every active consultant registered for the platform."""

    @abstractmethod
    async def touch_last_used(self, consultant_id: RowId, used_at: datetime) -> None:
        """Record when a consultant was last handed out."""

    @abstractmethod
    async def get_roster_totals(self, platform: str) -> RosterTotals:
        """Return total/active consultant counts and lifetime redirects."""


class ActivityCounter(ABC):
    """Inbound lead attribution, maintained outside this service."""

    @abstractmethod
    async def count_leads_for_day(self, day: date) -> Dict[Optional[str], int]:
        """
        Return lead counts for one calendar day keyed by the raw attribution
        key exactly as stored. Normalization is the caller's job.
        """


class ReservationStore(ABC):
    """Append-only log of issued redirect tokens."""

    @abstractmethod
    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        """Persist a newly issued reservation and return it with its id."""

    @abstractmethod
    async def confirm_issued(
        self,
        token: str,
        platform: str,
        numero: str,
        lead_data: Any,
        now: datetime,
    ) -> Optional[ConfirmedReservation]:
        """
        Atomically move a reservation from issued to confirmed.

        Succeeds only if the token is still issued, expires after ``now``,
        belongs to ``platform`` and its stored number is null or equals
        ``numero``. On success the referenced consultant's usage counter is
        incremented in the same unit of work. Returns None when nothing
        matched; callers diagnose why with get_reservation().
        """

    @abstractmethod
    async def get_reservation(self, token: str) -> Optional[Reservation]:
        """Return the most recent reservation carrying this token, if any."""

    @abstractmethod
    async def count_confirmed_for_day(self, platform: str, day: date, timezone_name: str) -> int:
        """Return how many reservations issued on ``day`` in ``timezone_name`` were confirmed."""


class RedirectStore(RosterStore, ActivityCounter, ReservationStore):
    """Everything the redirect services need from persistence."""


# =============================================================================
# PostgreSQL implementation
# =============================================================================


class PostgresRedirectStore(RedirectStore):
    """
    RedirectStore backed by the back-office PostgreSQL schema.

    Each call acquires its own pooled connection; only confirm_issued opens a
    transaction. Database errors are not caught here and propagate to the
    application's 500 handler.
    """

    def __init__(self, pool: Pool):
        self._pool = pool

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    async def list_active_consultants(self, platform: str) -> List[Consultant]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(get_active_roster_query(), platform)
        return [_record_to_consultant(dict(row)) for row in rows]

    async def touch_last_used(self, consultant_id: RowId, used_at: datetime) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(get_touch_last_used_query(), consultant_id, _to_db_timestamp(used_at))

    async def get_roster_totals(self, platform: str) -> RosterTotals:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(get_roster_totals_query(), platform)
        if row is None:
            return RosterTotals()
        return RosterTotals(
            total_consultants=int(row['total_consultores'] or 0),
            active_consultants=int(row['consultores_ativos'] or 0),
            total_redirects=int(row['total_redirecionamentos'] or 0),
        )

    # -------------------------------------------------------------------------
    # Activity
    # -------------------------------------------------------------------------

    async def count_leads_for_day(self, day: date) -> Dict[Optional[str], int]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(get_lead_counts_for_day_query(), day)
        return {row['attribution_key']: int(row['lead_count']) for row in rows}

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        async with self._pool.acquire() as conn:
            reservation_id = await conn.fetchval(
                get_insert_reservation_query(),
                reservation.consultant_id,
                reservation.platform,
                reservation.numero,
                reservation.token,
                reservation.ip_origem,
                reservation.user_agent,
                _to_db_timestamp(reservation.issued_at),
                _to_db_timestamp(reservation.expires_at),
            )
        return reservation.model_copy(update={'id': _row_id(reservation_id)})

    async def confirm_issued(
        self,
        token: str,
        platform: str,
        numero: str,
        lead_data: Any,
        now: datetime,
    ) -> Optional[ConfirmedReservation]:
        payload = json.dumps(lead_data if lead_data is not None else {})

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    get_confirm_reservation_query(),
                    token,
                    platform,
                    numero,
                    _to_db_timestamp(now),
                    payload,
                )
                if row is None:
                    logger.debug(f"No issued reservation matched token {token[:8]}... on {platform}")
                    return None

                consultant_id = row['consultor_id']
                if consultant_id is not None:
                    await conn.execute(get_increment_usage_query(), consultant_id)

        return ConfirmedReservation(
            numero=numero,
            platform=platform,
            consultant_id=consultant_id,
            confirmed_at=now,
        )

    async def get_reservation(self, token: str) -> Optional[Reservation]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(get_reservation_by_token_query(), token)
        if row is None:
            return None
        return _record_to_reservation(dict(row))

    async def count_confirmed_for_day(self, platform: str, day: date, timezone_name: str) -> int:
        async with self._pool.acquire() as conn:
            count = await conn.fetchval(
                get_confirmed_count_for_day_query(), platform, day, timezone_name
            )
        return int(count or 0)


# =============================================================================
# Record mapping
# =============================================================================


def _row_id(value: Any) -> Optional[RowId]:
    if value is None or isinstance(value, (int, str)):
        return value
    # uuid columns come back as uuid.UUID
    return str(value)


def _record_to_consultant(record: Mapping[str, Any]) -> Consultant:
    return Consultant(
        id=_row_id(record['id']),
        user_id=_row_id(record.get('user_id')),
        platform=record['plataforma'],
        numero=str(record['numero']),
        ativo=bool(record.get('ativo', True)),
        utm_consultor=record.get('utm_consultor'),
        name=record.get('name'),
        email=record.get('email'),
        total_usos=int(record.get('total_usos') or 0),
        ultimo_uso=record.get('ultimo_uso'),
        ordem_atual=int(record.get('ordem_atual') or 0),
    )


def _optional_str(value: Any) -> Optional[str]:
    # inet columns come back as ipaddress objects
    return str(value) if value is not None else None


def _to_db_timestamp(value: datetime) -> datetime:
    # redirect_logs and consultores_redirect use timestamp without time zone, in UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # timestamp-without-time-zone columns hold UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _decode_lead_data(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def _record_to_reservation(record: Mapping[str, Any]) -> Reservation:
    status = record.get('status') or ReservationStatus.ISSUED.value
    return Reservation(
        id=_row_id(record.get('id')),
        token=record['token'],
        platform=record['plataforma'],
        numero=record.get('numero'),
        consultant_id=_row_id(record.get('consultor_id')),
        status=ReservationStatus(status),
        issued_at=_as_aware(record['created_at']),
        expires_at=_as_aware(record['expira_em']),
        ip_origem=_optional_str(record.get('ip_origem')),
        user_agent=record.get('user_agent'),
        confirmed_at=_as_aware(record.get('confirmado_em')),
        lead_data=_decode_lead_data(record.get('dados_lead')),
    )
