"""Core Layer: error taxonomies, result types and pure membership rules.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are pure and deterministic (utcnow aside)

Design Decisions:
    - Functional core separated from imperative shell
"""
