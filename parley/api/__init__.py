"""API Layer: FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses, camelCase on the wire

Design Decisions:
    - Thin routes delegate to services built in dependencies.py
"""
