"""Digit scoring models.

Each model maps a digit history (oldest first) to a 10-element score list
indexed by digit. Higher means "more likely to print next" for that model.
"""
from __future__ import annotations

from collections.abc import Sequence

LDF_SCALE = 1.5
PF_SCALE = 30.0


def _counts(digits: Sequence[int]) -> list[int]:
    counts = [0] * 10
    for d in digits:
        counts[d] += 1
    return counts


def ldf_scores(digits: Sequence[int]) -> list[float]:
    """Least-digit-frequency: the rarer a digit, the higher it scores; the mode scores 0."""
    counts = _counts(digits)
    max_count = max(counts)
    return [(max_count - c) * LDF_SCALE for c in counts]


def recency_scores(digits: Sequence[int], *, absent_score: int) -> list[float]:
    """Ticks elapsed since each digit last printed; never-seen digits get ``absent_score``."""
    scores = [float(absent_score)] * 10
    n = len(digits)
    seen: set[int] = set()
    for idx in range(n - 1, -1, -1):
        d = digits[idx]
        if d in seen:
            continue
        seen.add(d)
        scores[d] = float(n - 1 - idx)
        if len(seen) == 10:
            break
    return scores


def pairing_frequency_scores(digits: Sequence[int]) -> list[float]:
    """How often each digit followed the current last digit, scaled so the max is 30."""
    if not digits:
        return [0.0] * 10
    last = digits[-1]
    transitions = [0] * 10
    for i in range(len(digits) - 1):
        if digits[i] == last:
            transitions[digits[i + 1]] += 1
    max_transition = max(transitions) or 1
    return [(t / max_transition) * PF_SCALE for t in transitions]
