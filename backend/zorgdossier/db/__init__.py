"""Persistence metadata — the declarative Base every model and migration shares.

Engines and sessions live in infrastructure.database; this package only holds
the table metadata.
"""
