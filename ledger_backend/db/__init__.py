"""Database Metadata — declarative base and portable column types.

Invariants:
    - Column types here behave identically on SQLite and PostgreSQL

Design Decisions:
    - Engine/session lifecycle lives in infrastructure/database.py, not here
"""
