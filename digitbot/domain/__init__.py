from .errors import DigitBotError, FeedError, InvalidObservation, WeightStoreError
from .models import (
    CONFIRMED,
    DIGITS,
    HOLD,
    MODEL_NAMES,
    REASON_CALIBRATING,
    REASON_UNCERTAIN,
    REASON_VOLATILE,
    ActiveSignal,
    ModelScores,
    Outcome,
    PipelineState,
    Prediction,
    Weights,
)

__all__ = [
    "CONFIRMED",
    "DIGITS",
    "HOLD",
    "MODEL_NAMES",
    "REASON_CALIBRATING",
    "REASON_UNCERTAIN",
    "REASON_VOLATILE",
    "ActiveSignal",
    "DigitBotError",
    "FeedError",
    "InvalidObservation",
    "ModelScores",
    "Outcome",
    "PipelineState",
    "Prediction",
    "WeightStoreError",
    "Weights",
]
