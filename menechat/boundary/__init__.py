"""
Boundary layer for external system integrations.

Handles all interactions with external systems (relational database,
completion API) plus the in-memory document store.
"""
