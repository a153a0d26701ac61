"""Infrastructure Layer — store access, repositories and cross-cutting concerns.

Invariants:
    - Infrastructure depends on core/, never the other way round
    - Store exceptions are classified into core/errors.py kinds before leaving this layer

Design Decisions:
    - One manager owns the engine/pool; repositories borrow transactions from it
"""
