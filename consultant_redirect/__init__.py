"""
Consultant Redirect Service Package.

FastAPI service that routes landing-page visitors to a sales consultant on
WhatsApp, balancing each day's leads across the active consultants and
tracking every hand-off with a short-lived, single-use token.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, exceptions and dependencies
    - models: Pydantic schemas and enums
    - services: Selection, reservation and balance logic plus stores
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
