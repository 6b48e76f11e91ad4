"""Infrastructure Layer: connection pool, storage error classification, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every storage failure leaves this layer classified as DBError
"""
