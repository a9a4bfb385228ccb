"""Services Layer — sync orchestration, reconciliation, deadline alerts, and delivery.

Invariants:
    - Services receive their collaborators explicitly (container.py), never via globals
    - Entry points take `now` as a parameter so cron and tests drive the same code

Design Decisions:
    - One service per responsibility; decision logic delegated to core/
"""
