"""Ledger Backend — category service for a personal-finance ledger.

Invariants:
    - Package root holds metadata only (import side-effects prohibited)

Design Decisions:
    - No star exports: callers import from the owning module explicitly
"""

__version__ = "1.0.0"
