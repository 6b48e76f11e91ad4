"""groupchat: fixed-capacity chat groups: membership, messages, storage errors.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
