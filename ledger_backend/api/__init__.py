"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses, errors included

Design Decisions:
    - Thin routes delegate to core builders and the repository
"""
