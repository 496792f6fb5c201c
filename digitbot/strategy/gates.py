from __future__ import annotations

import statistics
from collections.abc import Sequence

from digitbot.domain import REASON_UNCERTAIN, REASON_VOLATILE


def digit_dispersion(digits: Sequence[int], window: int) -> float | None:
    """Population std-dev of the last ``window`` digits, None if too few."""
    if window <= 0 or len(digits) < window:
        return None
    return statistics.pstdev(digits[-window:])


def pass_volatility_gate(
    digits: Sequence[int],
    *,
    window: int,
    threshold: float,
) -> tuple[bool, str]:
    std = digit_dispersion(digits, window)
    if std is None or std >= threshold:
        return False, REASON_VOLATILE
    return True, "ok"


def pass_certainty_gate(best: float, runner_up: float, *, ratio: float) -> tuple[bool, str]:
    if best > runner_up * ratio:
        return True, "ok"
    return False, REASON_UNCERTAIN
