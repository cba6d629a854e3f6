"""Infrastructure Layer — database, logging and external service clients.

Invariants:
    - Infrastructure imports only core/errors from the domain (for error mapping)
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility)
"""
