"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses or file downloads

Design Decisions:
    - Thin routes delegate to services and core (functional core, imperative shell)
"""
