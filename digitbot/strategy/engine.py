from __future__ import annotations

import math
from collections.abc import Sequence

from digitbot.config import PipelineConfig
from digitbot.domain import (
    CONFIRMED,
    DIGITS,
    HOLD,
    MODEL_NAMES,
    REASON_CALIBRATING,
    ModelScores,
    Prediction,
    Weights,
)
from digitbot.strategy.gates import pass_certainty_gate, pass_volatility_gate
from digitbot.strategy.scoring import ldf_scores, pairing_frequency_scores, recency_scores

MAX_CONFIDENCE = 99


def fuse_scores(scores: ModelScores, weights: Weights) -> list[float]:
    return [
        sum(weights.get(name) * scores.get(name)[d] for name in MODEL_NAMES)
        for d in DIGITS
    ]


def rank_models(scores: ModelScores, digit: int) -> list[str]:
    """Model names ordered by their raw score at ``digit``, highest first (ties keep model order)."""
    at = scores.at(digit)
    return sorted(MODEL_NAMES, key=lambda name: at[name], reverse=True)


class PredictionEngine:
    """Pure digits-to-prediction conversion, side-effect free."""

    def __init__(self, cfg: PipelineConfig):
        self.cfg = cfg

    def score(self, digits: Sequence[int]) -> ModelScores:
        return ModelScores(
            ldf=tuple(ldf_scores(digits)),
            recency=tuple(recency_scores(digits, absent_score=self.cfg.analysis_ticks)),
            pf=tuple(pairing_frequency_scores(digits)),
        )

    def predict(self, digits: Sequence[int], weights: Weights) -> Prediction:
        if len(digits) < self.cfg.analysis_ticks:
            return Prediction(signal=HOLD, reason=REASON_CALIBRATING)

        ok, reason = pass_volatility_gate(
            digits,
            window=self.cfg.volatility_window,
            threshold=self.cfg.volatility_threshold,
        )
        if not ok:
            return Prediction(signal=HOLD, reason=reason)

        scores = self.score(digits)
        final = fuse_scores(scores, weights)
        ordered = sorted(DIGITS, key=lambda d: final[d], reverse=True)
        best, runner_up = ordered[0], ordered[1]

        ok, reason = pass_certainty_gate(
            final[best], final[runner_up], ratio=self.cfg.certainty_ratio
        )
        if not ok:
            return Prediction(
                signal=HOLD,
                reason=reason,
                model_scores=scores,
                final_scores=tuple(final),
            )

        confidence = min(MAX_CONFIDENCE, math.floor(50 + (final[best] - final[runner_up]) * 2))
        top_models = tuple(name.upper() for name in rank_models(scores, best)[:2])
        return Prediction(
            signal=CONFIRMED,
            reason="ok",
            digit=best,
            confidence=int(confidence),
            top_models=top_models,
            model_scores=scores,
            final_scores=tuple(final),
        )
