from __future__ import annotations

import math

from digitbot.domain import InvalidObservation


class KalmanSmoother:
    """One-dimensional recursive filter turning raw quotes into a de-noised estimate.

    ``process_noise`` (R) is added to the error covariance on every step and
    ``observation_noise`` (Q) sets how much a single quote is trusted.
    """

    def __init__(self, process_noise: float = 0.01, observation_noise: float = 0.1):
        self.process_noise = float(process_noise)
        self.observation_noise = float(observation_noise)
        self.estimate: float | None = None
        self.error_covariance = 1.0

    def update(self, z) -> float:
        try:
            z = float(z)
        except (TypeError, ValueError) as exc:
            raise InvalidObservation(f"non-numeric observation {z!r}") from exc
        if not math.isfinite(z):
            raise InvalidObservation(f"non-finite observation {z!r}")

        if self.estimate is None:
            self.estimate = z
            self.error_covariance = 1.0
        p_pred = self.error_covariance + self.process_noise
        gain = p_pred / (p_pred + self.observation_noise)
        self.estimate = self.estimate + gain * (z - self.estimate)
        self.error_covariance = (1.0 - gain) * p_pred
        return self.estimate

    def state(self) -> dict[str, float | None]:
        return {"estimate": self.estimate, "error_covariance": self.error_covariance}
