from __future__ import annotations

import math
from collections import deque
from decimal import ROUND_HALF_UP, Decimal, localcontext

from digitbot.domain import InvalidObservation

_CENTS = Decimal("0.01")


def last_digit(value: float) -> int:
    """Last decimal digit of ``value`` rounded half-up to two fractional digits.

    Rounding works on the exact binary value of the float, so 1.005 (stored as
    1.00499999...) yields 0 while 0.125 yields 3. Non-numeric and non-finite
    values raise ``InvalidObservation``.
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidObservation(f"non-numeric observation {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidObservation(f"non-finite observation {value!r}")
    exact = Decimal(value)
    with localcontext() as ctx:
        # room for every integer digit plus the two cents digits
        ctx.prec = max(28, exact.adjusted() + 4)
        cents = exact.quantize(_CENTS, rounding=ROUND_HALF_UP)
        return abs(int(cents.scaleb(2))) % 10


class HistoryBuffer:
    """Bounded FIFO of smoothed prices for one instrument."""

    def __init__(self, maxlen: int):
        self.maxlen = int(maxlen)
        self._values: deque[float] = deque(maxlen=self.maxlen)

    def __len__(self) -> int:
        return len(self._values)

    def append(self, value: float) -> None:
        self._values.append(float(value))

    def values(self) -> list[float]:
        return list(self._values)

    def digits(self) -> list[int]:
        return [last_digit(v) for v in self._values]

    def last_digit(self) -> int | None:
        if not self._values:
            return None
        return last_digit(self._values[-1])
