"""Core Layer — pure domain logic: value types, errors, pagination, contracts.

Invariants:
    - No module in core/ imports from api/, infrastructure/, db/ or models/
    - All functions are pure and deterministic (no IO, no async except Protocols)

Design Decisions:
    - Functional core separated from imperative shell
"""
