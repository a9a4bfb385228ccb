"""DocketWatch — Docketwise matter sync, deadline alerts, and live notification fan-out.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
