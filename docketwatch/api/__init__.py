"""API Layer — FastAPI routes, dependencies, SSE helpers, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses (except the SSE stream)

Design Decisions:
    - Thin routes delegate to services reached through the container
"""
