from __future__ import annotations

from digitbot.config import PipelineConfig
from digitbot.domain import MODEL_NAMES, ActiveSignal, Outcome, Weights
from digitbot.strategy.engine import rank_models


def clamp_weights(weights: Weights, *, lo: float, hi: float) -> Weights:
    return Weights(**{name: max(lo, min(hi, weights.get(name))) for name in MODEL_NAMES})


class AdaptiveLearner:
    """Online re-weighting of the scoring models from resolved signals.

    A win rewards the two models that scored the realized digit highest
    (``2*step`` and ``step``). A loss penalises the model that scored the
    wrongly predicted digit highest (``-2*step``). Weights are clamped to
    ``[weight_min, weight_max]`` after every update.
    """

    def __init__(self, cfg: PipelineConfig):
        self.step = float(cfg.learning_step)
        self.lo = float(cfg.weight_min)
        self.hi = float(cfg.weight_max)

    def clamp(self, weights: Weights) -> Weights:
        return clamp_weights(weights, lo=self.lo, hi=self.hi)

    def learn(self, weights: Weights, signal: ActiveSignal, realized_digit: int) -> Outcome:
        predicted = signal.predicted_digit
        won = realized_digit == predicted
        values = weights.as_dict()

        if won:
            ranked = rank_models(signal.model_scores, realized_digit)
            values[ranked[0]] += self.step * 2
            values[ranked[1]] += self.step
        else:
            ranked = rank_models(signal.model_scores, predicted)
            values[ranked[0]] -= self.step * 2

        updated = self.clamp(Weights(**values))
        return Outcome(
            won=won,
            predicted_digit=predicted,
            actual_digit=realized_digit,
            weights=updated,
        )
