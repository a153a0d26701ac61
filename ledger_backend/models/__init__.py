"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Imported here so Base.metadata is complete before create_all / alembic autogenerate

Design Decisions:
    - One file per entity for locality
"""

from ledger_backend.models.category import CategoryRow  # noqa: F401
