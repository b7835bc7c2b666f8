"""Services Layer — composes the pure core with infrastructure.

Invariants:
    - One service per resolution stage (lookup, destination, fallback, scans)
    - ResolveOrchestrator is the only service the API layer calls

Design Decisions:
    - Collaborators injected through constructors, typed by core Protocols
"""
