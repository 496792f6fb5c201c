from .engine import PredictionEngine, fuse_scores, rank_models
from .gates import digit_dispersion, pass_certainty_gate, pass_volatility_gate
from .history import HistoryBuffer, last_digit
from .learner import AdaptiveLearner, clamp_weights
from .scoring import ldf_scores, pairing_frequency_scores, recency_scores
from .smoother import KalmanSmoother

__all__ = [
    "AdaptiveLearner",
    "HistoryBuffer",
    "KalmanSmoother",
    "PredictionEngine",
    "clamp_weights",
    "digit_dispersion",
    "fuse_scores",
    "last_digit",
    "ldf_scores",
    "pairing_frequency_scores",
    "pass_certainty_gate",
    "pass_volatility_gate",
    "rank_models",
    "recency_scores",
]
