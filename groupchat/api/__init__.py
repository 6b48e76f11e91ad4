"""API Layer: FastAPI error handlers and health probes.

Invariants:
    - Every error response body goes through core/error_mapper.py
"""
