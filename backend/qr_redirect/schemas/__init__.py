"""Pydantic Schemas — validation for payloads crossing the system boundary.

Invariants:
    - Schemas validate untrusted input (model output, configuration payloads)
"""
