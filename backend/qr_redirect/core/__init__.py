"""Core Layer — pure domain logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Policy, credential and rendering functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
    - Collaborator contracts live in repository_protocols.py so the shell
      depends on core, never the reverse
"""
