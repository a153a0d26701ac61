"""Pydantic Schemas — request/response shapes for API endpoints.

Invariants:
    - Schemas check wire shape only; domain rules live in core/
    - Responses are rendered from core values, never from ORM rows

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
