'''
Consultant Redirect Test Suite

Test Modules:
-------------
- test_selection.py: least-loaded selection
  - Matching-key normalization and daily aggregation
  - Random tie-break among the least loaded
  - Platform isolation

- test_reservations.py: token lifecycle
  - Issuance, backup-number fallback
  - Single-use confirmation, expiry, concurrent confirmations
  - Day-long fairness (spread never above 1)

- test_balance.py: fairness snapshot summary
- test_config.py: settings validation and backup number lookup
- test_postgres_store.py: PostgresRedirectStore against a mocked asyncpg pool
- test_redirect_api.py: HTTP contract of the public endpoints

Fixtures live in conftest.py; the in-memory store stands in for PostgreSQL.
'''
