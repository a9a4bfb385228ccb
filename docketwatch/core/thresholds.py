"""Threshold Selection — which deadline threshold (if any) fires for one dedup tuple.

Invariants:
    - At most ONE threshold returned per (matter, recipient, channel) per evaluation pass
    - A returned threshold t always satisfies days_remaining <= t (crossed)
    - A returned threshold is never in already_sent
    - Only sent thresholds that are still crossed constrain the choice: a deadline pushed
      out past an earlier alert starts over at its nearest crossed threshold

Design Decisions:
    - First alert for a tuple = the NEAREST crossed threshold (smallest t >= days_remaining):
      a deadline discovered 6 days out alerts at 7, not at 30
    - After that, step down one threshold per pass: the largest crossed t below the smallest
      sent-and-still-crossed one. Missed passes are caught up one threshold at a time, never
      in bulk (bounds alert volume after scheduler downtime)
    - Past-due deadlines (days_remaining < 0) still cross every threshold; the smallest
      (usually 0) fires if not yet sent
"""

from collections.abc import Iterable


def crossed_thresholds(days_remaining: int, thresholds: Iterable[int]) -> list[int]:
    """Thresholds t with days_remaining <= t, descending."""
    return sorted({t for t in thresholds if days_remaining <= t}, reverse=True)


def select_threshold(
    days_remaining: int,
    thresholds: Iterable[int],
    already_sent: Iterable[int] = (),
) -> int | None:
    """Pick the single threshold to emit now, or None."""
    crossed = crossed_thresholds(days_remaining, thresholds)
    if not crossed:
        return None
    # thresholds sent for an earlier, closer deadline no longer apply
    sent = set(already_sent) & set(crossed)
    if not sent:
        return crossed[-1]
    floor = min(sent)
    below = [t for t in crossed if t < floor]
    return below[0] if below else None


def max_threshold(thresholds: Iterable[int]) -> int:
    return max(thresholds, default=0)
