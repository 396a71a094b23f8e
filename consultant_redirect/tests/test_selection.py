"""
Tests for least-loaded consultant selection.

Test Classes:
- TestNormalization: matching-key normalization, aggregation, platform parsing
- TestBusinessDay: calendar day in the business timezone
- TestPickLeastLoaded: tie-break over precomputed loads
- TestSelectConsultant: selection against the in-memory store
"""

import random
from collections import Counter
from datetime import date, datetime, timedelta, timezone

import pytest

from consultant_redirect.models.schemas import ConsultantLoad
from consultant_redirect.services.selection import (
    aggregate_daily_counts,
    business_day,
    load_today_counts,
    normalize_matching_key,
    pick_least_loaded,
    resolve_platform,
    select_consultant,
)
from consultant_redirect.tests.conftest import FIXED_NOW, make_consultant


def _load(consultant_id: int, count: int) -> ConsultantLoad:
    consultant = make_consultant(consultant_id, f'c{consultant_id}')
    return ConsultantLoad(consultant=consultant, matching_key=f'c{consultant_id}', today_count=count)


# =============================================================================
# Test Class: TestNormalization
# =============================================================================

class TestNormalization:

    @pytest.mark.parametrize('raw, expected', [
        ('Maria', 'maria'),
        ('  MARIA  ', 'maria'),
        ('Maria Souza', 'maria souza'),
        ('', None),
        ('   ', None),
        (None, None),
    ])
    def test_normalize_matching_key(self, raw, expected) -> None:
        assert normalize_matching_key(raw) == expected

    def test_aggregate_merges_case_and_whitespace_variants(self) -> None:
        counts = aggregate_daily_counts({'Maria': 2, 'maria ': 1, ' MARIA': 3, 'joao': 1})

        assert counts == {'maria': 6, 'joao': 1}

    def test_aggregate_drops_unattributed_leads(self) -> None:
        counts = aggregate_daily_counts({None: 7, '  ': 2, 'ana': 1})

        assert counts == {'ana': 1}

    def test_resolve_platform_defaults_when_blank(self) -> None:
        assert resolve_platform(None, 'whatsapp') == 'whatsapp'
        assert resolve_platform('   ', 'whatsapp') == 'whatsapp'

    def test_resolve_platform_is_case_insensitive(self) -> None:
        assert resolve_platform(' Google ', 'whatsapp') == 'google'
        assert resolve_platform('META', 'whatsapp') == 'meta'

    def test_resolve_platform_keeps_unknown_tag(self) -> None:
        assert resolve_platform(' Telegram ', 'whatsapp') == 'telegram'


# =============================================================================
# Test Class: TestBusinessDay
# =============================================================================

class TestBusinessDay:

    def test_late_evening_in_sao_paulo_is_still_the_previous_day(self) -> None:
        # 01:30 UTC is 22:30 the day before in São Paulo (UTC-3)
        now = datetime(2026, 10, 20, 1, 30, tzinfo=timezone.utc)

        assert business_day(now, 'America/Sao_Paulo') == date(2026, 10, 19)

    def test_naive_datetime_is_read_as_utc(self) -> None:
        now = datetime(2026, 10, 20, 2, 59)

        assert business_day(now, 'America/Sao_Paulo') == date(2026, 10, 19)
        assert business_day(now + timedelta(minutes=1), 'America/Sao_Paulo') == date(2026, 10, 20)


# =============================================================================
# Test Class: TestPickLeastLoaded
# =============================================================================

class TestPickLeastLoaded:

    def test_empty_loads_yield_none(self) -> None:
        assert pick_least_loaded([]) is None

    def test_unique_minimum_always_wins(self) -> None:
        loads = [_load(1, 4), _load(2, 1), _load(3, 2)]
        rng = random.Random(7)

        picks = {pick_least_loaded(loads, rng).consultant.id for _ in range(50)}

        assert picks == {2}

    def test_tie_break_reaches_every_tied_consultant(self) -> None:
        loads = [_load(1, 0), _load(2, 0), _load(3, 0), _load(4, 1)]
        rng = random.Random(11)

        picks = {pick_least_loaded(loads, rng).consultant.id for _ in range(200)}

        assert picks == {1, 2, 3}

    def test_default_random_source_is_used_without_rng(self) -> None:
        loads = [_load(1, 0), _load(2, 0)]

        assert pick_least_loaded(loads).consultant.id in {1, 2}


# =============================================================================
# Test Class: TestSelectConsultant
# =============================================================================

class TestSelectConsultant:

    pytestmark = pytest.mark.asyncio

    async def test_no_active_consultant_returns_none(self, store, settings) -> None:
        store.add_consultant(make_consultant(1, 'ana', ativo=False))

        chosen = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW)

        assert chosen is None

    async def test_counts_match_keys_case_insensitively(self, store, settings, roster, today) -> None:
        store.add_leads('ANA', today, 2)
        store.add_leads('Bruno', today, 1)
        store.add_leads('carla  ', today, 3)

        loads = await load_today_counts(store, store, 'whatsapp', today)

        assert {load.consultant.id: load.today_count for load in loads} == {1: 2, 2: 1, 3: 3}
        assert [load.matching_key for load in loads] == ['ana', 'bruno', 'carla']

    async def test_leads_from_other_days_are_ignored(self, store, settings, roster, today, rng) -> None:
        store.add_leads('ana', today - timedelta(days=1), 10)
        store.add_leads('bruno', today, 1)
        store.add_leads('carla', today, 1)

        chosen = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW, rng=rng)

        assert chosen.id == 1

    async def test_consultant_without_key_counts_zero(self, store, settings, today, rng) -> None:
        store.add_consultant(make_consultant(1, 'ana'))
        store.add_consultant(make_consultant(2, None))
        store.add_leads('ana', today, 1)
        store.add_leads(None, today, 5)

        chosen = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW, rng=rng)

        assert chosen.id == 2

    async def test_platform_isolation(self, store, settings, today, rng) -> None:
        store.add_consultant(make_consultant(1, 'ana', platform='whatsapp'))
        store.add_consultant(make_consultant(2, 'bia', platform='google'))
        store.add_leads('ana', today, 9)

        whatsapp = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW, rng=rng)
        google = await select_consultant(store, store, settings, 'google', now=FIXED_NOW, rng=rng)
        meta = await select_consultant(store, store, settings, 'meta', now=FIXED_NOW, rng=rng)

        assert whatsapp.id == 1
        assert google.id == 2
        assert meta is None

    async def test_blank_platform_uses_default(self, store, settings, roster, rng) -> None:
        chosen = await select_consultant(store, store, settings, '', now=FIXED_NOW, rng=rng)

        assert chosen.platform == 'whatsapp'

    async def test_unknown_platform_has_no_candidates(self, store, settings, roster, rng) -> None:
        chosen = await select_consultant(store, store, settings, 'tiktok', now=FIXED_NOW, rng=rng)

        assert chosen is None

    @pytest.mark.statistical
    async def test_all_zero_counts_spread_picks_evenly(self, store, settings, roster, rng) -> None:
        picks = Counter()
        for _ in range(600):
            chosen = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW, rng=rng)
            picks[chosen.id] += 1

        assert set(picks) == {1, 2, 3}
        for count in picks.values():
            assert 140 <= count <= 260

    @pytest.mark.statistical
    async def test_loaded_consultant_is_skipped_and_ties_split(self, store, settings, roster, today, rng) -> None:
        store.add_leads('ana', today, 3)
        store.add_leads('bruno', today, 1)
        store.add_leads('carla', today, 1)

        picks = Counter()
        for _ in range(400):
            chosen = await select_consultant(store, store, settings, 'whatsapp', now=FIXED_NOW, rng=rng)
            picks[chosen.id] += 1

        assert picks[1] == 0
        assert 140 <= picks[2] <= 260
        assert 140 <= picks[3] <= 260
