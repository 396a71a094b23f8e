"""
Daily fairness snapshot for the operations dashboard.

Recomputes today's per-consultant lead counts exactly the way selection does
and summarizes their distribution. Under the least-loaded policy the spread
(max - min) should stay at 0 or 1; a growing spread usually means a
consultant's utm_consultor no longer matches the attribution typed on leads.

Read-only: no store writes and no failure modes beyond store errors. An
unknown platform tag is an empty roster.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import numpy as np

from consultant_redirect.core.config import Settings
from consultant_redirect.models.schemas import ConsultantLoad, TodayBalance
from consultant_redirect.services.selection import (
    business_day,
    load_today_counts,
    resolve_platform,
)
from consultant_redirect.services.store import RedirectStore


logger = logging.getLogger(__name__)


def _sort_key(load: ConsultantLoad):
    return (load.today_count, str(load.consultant.id))


def summarize_loads(platform: str, loads: List[ConsultantLoad]) -> TodayBalance:
    """
    Build the min/max/spread/mean/std summary for a list of loads.

    An empty roster yields zeros everywhere. Standard deviation is the
    population one (ddof=0). Loads are ordered by count, then id, so the
    output is stable across calls.
    """
    ordered = sorted(loads, key=_sort_key)
    if not ordered:
        return TodayBalance(platform=platform)

    counts = np.array([load.today_count for load in ordered], dtype=float)
    lowest = int(counts.min())
    highest = int(counts.max())

    return TodayBalance(
        platform=platform,
        per_consultant=ordered,
        min=lowest,
        max=highest,
        spread=highest - lowest,
        mean=round(float(counts.mean()), 4),
        std_dev=round(float(counts.std()), 4),
    )


async def get_today_balance(
    store: RedirectStore,
    settings: Settings,
    platform: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TodayBalance:
    """
    Report how evenly today's leads are spread over a platform's consultants.

    Args:
        store: Roster, activity and reservation persistence.
        settings: Supplies the default platform and business timezone.
        platform: Platform tag; blank means the configured default.
        now: Current time, injectable for tests. Defaults to UTC now.

    Returns:
        TodayBalance with per-consultant counts, distribution summary,
        roster totals and confirmed redirects today. An unknown platform
        yields an empty snapshot.
    """
    resolved = resolve_platform(platform, settings.redirect_default_platform)
    now = now or datetime.now(timezone.utc)
    day = business_day(now, settings.redirect_timezone)

    loads = await load_today_counts(store, store, resolved, day)
    balance = summarize_loads(resolved, loads)

    balance.totals = await store.get_roster_totals(resolved)
    balance.redirects_today = await store.count_confirmed_for_day(
        resolved, day, settings.redirect_timezone
    )

    logger.debug(
        f"Balance for {resolved} on {day.isoformat()}: "
        f"min={balance.min} max={balance.max} spread={balance.spread}"
    )
    return balance
