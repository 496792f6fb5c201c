from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

MODEL_NAMES = ("ldf", "recency", "pf")
DIGITS = range(10)

CONFIRMED = "CONFIRMED"
HOLD = "HOLD"

REASON_CALIBRATING = "calibrating"
REASON_VOLATILE = "too volatile"
REASON_UNCERTAIN = "no high-certainty signal"


class PipelineState(str, Enum):
    CALIBRATING = "CALIBRATING"
    ANALYZING = "ANALYZING"
    SIGNAL_ACTIVE = "SIGNAL_ACTIVE"


@dataclass(frozen=True)
class Weights:
    ldf: float = 1.0
    recency: float = 1.0
    pf: float = 1.0

    def get(self, model: str) -> float:
        return float(getattr(self, model))

    def as_dict(self) -> dict[str, float]:
        return {"ldf": self.ldf, "recency": self.recency, "pf": self.pf}

    @classmethod
    def from_dict(cls, raw: dict | None) -> "Weights":
        base = cls()
        if not raw:
            return base
        values = {}
        for name in MODEL_NAMES:
            try:
                values[name] = float(raw.get(name, base.get(name)))
            except (TypeError, ValueError):
                values[name] = base.get(name)
        return cls(**values)


@dataclass(frozen=True)
class ModelScores:
    ldf: tuple[float, ...]
    recency: tuple[float, ...]
    pf: tuple[float, ...]

    def get(self, model: str) -> tuple[float, ...]:
        return getattr(self, model)

    def at(self, digit: int) -> dict[str, float]:
        """Score each model gave to ``digit``, in model order."""
        return {name: self.get(name)[digit] for name in MODEL_NAMES}

    def as_dict(self) -> dict[str, list[float]]:
        return {name: list(self.get(name)) for name in MODEL_NAMES}


@dataclass(frozen=True)
class Prediction:
    signal: str
    reason: str = ""
    digit: int | None = None
    confidence: int = 0
    top_models: tuple[str, ...] = ()
    model_scores: ModelScores | None = None
    final_scores: tuple[float, ...] = ()

    @property
    def confirmed(self) -> bool:
        return self.signal == CONFIRMED


@dataclass(frozen=True)
class ActiveSignal:
    predicted_digit: int
    model_scores: ModelScores
    opened_at: float
    epoch: int
    confidence: int = 0
    top_models: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Outcome:
    won: bool
    predicted_digit: int
    actual_digit: int
    weights: Weights
