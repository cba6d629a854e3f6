"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are deterministic given their inputs (callers pass `today` explicitly)

Design Decisions:
    - Functional core separated from imperative shell: rule tables and heuristics are
      testable without a database
"""
