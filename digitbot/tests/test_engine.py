from digitbot.config import PipelineConfig
from digitbot.domain import Weights
from digitbot.strategy.engine import PredictionEngine, fuse_scores


def test_calibrating_below_min_history() -> None:
    engine = PredictionEngine(PipelineConfig())
    out = engine.predict([4] * 99, Weights())
    assert not out.confirmed
    assert out.reason == "calibrating"
    assert out.model_scores is None


def test_volatile_window_holds() -> None:
    engine = PredictionEngine(PipelineConfig())
    out = engine.predict([0, 9] * 50, Weights())
    assert out.reason == "too volatile"


def test_flat_history_has_no_certain_digit() -> None:
    engine = PredictionEngine(PipelineConfig())
    out = engine.predict([4] * 100, Weights())
    assert not out.confirmed
    assert out.reason == "no high-certainty signal"


def test_confirmed_prediction(confident_digits) -> None:
    engine = PredictionEngine(PipelineConfig())
    out = engine.predict(confident_digits, Weights())
    assert out.confirmed
    assert out.digit == 9
    assert out.confidence == 99
    assert out.top_models == ("RECENCY", "LDF")
    assert out.model_scores.at(9) == {"ldf": 48.0, "recency": 100.0, "pf": 0.0}
    assert out.final_scores[9] == 148.0


def test_fusion_applies_weights(confident_digits) -> None:
    engine = PredictionEngine(PipelineConfig())
    scores = engine.score(confident_digits)
    fused = fuse_scores(scores, Weights(ldf=2.0, recency=0.5, pf=1.0))
    assert fused[9] == 48.0 * 2.0 + 100.0 * 0.5
    assert fused[0] == 46.5 * 2.0 + 5.0 * 0.5
