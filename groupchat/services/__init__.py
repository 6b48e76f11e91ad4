"""Services Layer: domain operations over the pooled database.

Invariants:
    - Every operation acquires its own session from the injected manager
    - Every operation raises ApiError only (storage_boundary wraps DBError)

Design Decisions:
    - One service class per aggregate (users, groups, messages)
"""
