"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Resolve routes answer with redirects or documents, never raw errors

Design Decisions:
    - Thin routes delegate to services (ADR: impureim sandwich)
"""
