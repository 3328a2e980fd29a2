"""
ALOKA Backend — Application Package
====================================

Studio marketplace API: studio listing/search, studio management and
account identity.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← query params, status codes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← presence rules, query building
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
