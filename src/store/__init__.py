"""In-memory dataset core.

This package holds the type registry, column store, row index,
mutation engine, ordering and change notification behind ``Dataset``.
"""
