"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services own IO (DB sessions, LLM calls, document rendering)
    - Scoring and rule logic stays in core/; services only load, call and persist

Design Decisions:
    - Plain async functions over classes where no state is carried
"""
