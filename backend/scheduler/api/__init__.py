"""API Layer — FastAPI routes, request dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses; errors use one envelope

Design Decisions:
    - Thin routes delegate to services; api/deps.py wires services per request
"""
