"""
Least-loaded-today consultant selection.

Policy:
1. Take every active consultant registered for the platform.
2. Count the leads attributed to each of them today. Attribution comes from
   leads_educa.var1, typed independently of users.utm_consultor, so both sides
   are compared after strip + lower-case.
3. Keep the consultants with the smallest count and pick one of them at
   random. Ties are never broken by insertion order or id.

Only this policy exists. The legacy strict round-robin (ordem_atual rotation
with a reservado_ate soft lock) is not implemented; concurrent requests may
pick the same consultant and fairness is judged over the whole day.
"""

import logging
import random
from datetime import date, datetime, timezone
from typing import Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from consultant_redirect.core.config import Settings
from consultant_redirect.models.enums import Platform
from consultant_redirect.models.schemas import Consultant, ConsultantLoad
from consultant_redirect.services.store import ActivityCounter, RosterStore


logger = logging.getLogger(__name__)

# Default random source; tests pass a seeded random.Random instead.
_system_random = random.SystemRandom()


# =============================================================================
# Input normalization
# =============================================================================


def resolve_platform(platform: Optional[str], default_platform: str) -> str:
    """
    Normalize the caller's platform tag.

    A missing or blank tag falls back to ``default_platform``. Tags outside
    the Platform set are kept as given (lower-cased); no consultant is ever
    registered for them, so they resolve to an empty roster and the caller
    goes down the backup-number path.
    """
    candidate = platform if platform and platform.strip() else default_platform
    parsed = Platform.parse(candidate)
    if parsed is None:
        logger.info(f"Unknown platform tag {candidate!r}, no consultants registered")
        return candidate.strip().lower()
    return parsed.value


def normalize_matching_key(value: Optional[str]) -> Optional[str]:
    """
    Normalize a free-text attribution key for comparison.

    >>> normalize_matching_key("  Maria Souza ")
    'maria souza'
    >>> normalize_matching_key("   ") is None
    True
    """
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


def aggregate_daily_counts(raw_counts: Mapping[Optional[str], int]) -> Dict[str, int]:
    """
    Fold raw per-key lead counts into normalized keys.

    "Maria", "maria " and "MARIA" are the same consultant, so their counts are
    summed. Leads without an attribution key belong to nobody and are dropped.
    """
    counts: Dict[str, int] = {}
    for raw_key, count in raw_counts.items():
        key = normalize_matching_key(raw_key)
        if key is None:
            continue
        counts[key] = counts.get(key, 0) + int(count)
    return counts


def business_day(now: datetime, timezone_name: str) -> date:
    """Calendar day of ``now`` in the business timezone."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(timezone_name)).date()


# =============================================================================
# Load computation
# =============================================================================


async def load_today_counts(
    roster: RosterStore,
    activity: ActivityCounter,
    platform: str,
    day: date,
) -> List[ConsultantLoad]:
    """
    Pair every active consultant of ``platform`` with their lead count for ``day``.

    A consultant without a matching key, or whose key has no leads, counts 0.
    Returned in roster order.
    """
    consultants = await roster.list_active_consultants(platform)
    if not consultants:
        return []

    counts = aggregate_daily_counts(await activity.count_leads_for_day(day))

    loads = []
    for consultant in consultants:
        key = normalize_matching_key(consultant.utm_consultor)
        loads.append(
            ConsultantLoad(
                consultant=consultant,
                matching_key=key,
                today_count=counts.get(key, 0) if key else 0,
            )
        )
    return loads


def pick_least_loaded(
    loads: List[ConsultantLoad],
    rng: Optional[random.Random] = None,
) -> Optional[ConsultantLoad]:
    """
    Choose uniformly at random among the loads sharing the minimum count.

    Returns None for an empty list.
    """
    if not loads:
        return None

    lowest = min(load.today_count for load in loads)
    tied = [load for load in loads if load.today_count == lowest]
    return (rng or _system_random).choice(tied)


async def select_consultant(
    store: RosterStore,
    activity: ActivityCounter,
    settings: Settings,
    platform: Optional[str] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Consultant]:
    """
    Pick the consultant who should receive the next contact on ``platform``.

    Args:
        store: Roster of consultants.
        activity: Source of today's lead attribution.
        settings: Supplies the default platform and business timezone.
        platform: Caller's platform tag; blank means the configured default.
        now: Current time, injectable for tests. Defaults to UTC now.
        rng: Random source for the tie-break.

    Returns:
        The chosen Consultant, or None when the platform has no active
        consultant. Falling back to a backup number is the caller's decision.
    """
    resolved = resolve_platform(platform, settings.redirect_default_platform)
    now = now or datetime.now(timezone.utc)

    loads = await load_today_counts(
        store,
        activity,
        resolved,
        business_day(now, settings.redirect_timezone),
    )
    chosen = pick_least_loaded(loads, rng)
    if chosen is None:
        logger.info(f"No active consultant for platform={resolved}")
        return None

    logger.debug(
        f"Selected consultant id={chosen.consultant.id} on {resolved} "
        f"with {chosen.today_count} leads today among {len(loads)} active"
    )
    return chosen.consultant
