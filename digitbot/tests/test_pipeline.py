import asyncio
import json
import math
from pathlib import Path

import pytest

from digitbot.config import PipelineConfig
from digitbot.data.weight_store import WeightStore
from digitbot.domain import Weights
from digitbot.infra import RuntimeEventLogger
from digitbot.runtime.pipeline import PipelineManager

# A near-zero observation noise makes the smoothed price track the quote,
# so each quote's cents digit is the digit the models see.
FAST = PipelineConfig(kalman_q=1e-9, entry_window_sec=0.05)


def _price(digit: int) -> float:
    return 100.0 + digit / 100.0


def _manager(published: list, **kw) -> PipelineManager:
    return PipelineManager(kw.pop("cfg", FAST), symbols=["1HZ100V"], publish=published.append, **kw)


def _feed(pm: PipelineManager, digits: list[int]) -> None:
    for i, d in enumerate(digits):
        pm.on_tick("1HZ100V", _price(d), float(i))


class FailingStore:
    def __init__(self):
        self.save_calls = 0

    def load(self, symbol):
        raise OSError("disk gone")

    def save(self, symbol, weights):
        self.save_calls += 1
        raise OSError("disk gone")


def test_unknown_symbol_is_ignored() -> None:
    events: list = []
    pm = _manager(events)
    pm.on_tick("R_75", 101.23, 0.0)
    assert events == []
    assert "R_75" not in pm.instruments


def test_non_finite_price_is_a_noop() -> None:
    events: list = []
    pm = _manager(events)
    pm.on_tick("1HZ100V", math.nan, 0.0)
    pm.on_tick("1HZ100V", math.inf, 1.0)
    inst = pm.instruments["1HZ100V"]
    assert events == []
    assert len(inst.history) == 0
    assert inst.smoother.estimate is None


def test_calibrating_status_until_min_history() -> None:
    events: list = []
    pm = _manager(events)
    _feed(pm, [4] * 10)
    ticks = [e for e in events if e["type"] == "tick"]
    statuses = [e for e in events if e["type"] == "status"]
    assert len(ticks) == 10
    assert ticks[-1]["digit"] == 4
    assert all(s["state"] == "CALIBRATING" and s["reason"] == "calibrating" for s in statuses)
    assert pm.instruments["1HZ100V"].state.value == "CALIBRATING"


def test_signal_opens_and_blocks_reanalysis(confident_digits) -> None:
    events: list = []
    pm = _manager(events)
    _feed(pm, confident_digits)

    signal = events[-1]
    assert signal["type"] == "signal"
    assert signal["digit"] == 9
    assert signal["confidence"] == 99
    assert signal["models"] == ["RECENCY", "LDF"]
    inst = pm.instruments["1HZ100V"]
    assert inst.active_signal is not None
    assert inst.state.value == "SIGNAL_ACTIVE"

    before = len(events)
    pm.on_tick("1HZ100V", _price(9), 200.0)
    assert [e["type"] for e in events[before:]] == ["tick"]


def test_evaluate_win_updates_weights(confident_digits) -> None:
    events: list = []
    pm = _manager(events)
    _feed(pm, confident_digits)
    pm.on_tick("1HZ100V", _price(9), 200.0)

    out = pm.evaluate("1HZ100V", 1)
    inst = pm.instruments["1HZ100V"]
    assert out is not None and out.won
    assert inst.active_signal is None
    assert inst.wins == 1
    assert inst.weights.recency == pytest.approx(1.1)
    assert inst.weights.ldf == pytest.approx(1.05)
    assert inst.weights.pf == 1.0
    assert events[-1]["type"] == "outcome"
    assert events[-1]["won"] is True


def test_stale_epoch_is_ignored(confident_digits) -> None:
    events: list = []
    pm = _manager(events)
    _feed(pm, confident_digits)
    assert pm.evaluate("1HZ100V", 99) is None
    assert pm.instruments["1HZ100V"].active_signal is not None


def test_store_failures_are_not_fatal(confident_digits) -> None:
    events: list = []
    store = FailingStore()
    pm = _manager(events, store=store)
    assert pm.instruments["1HZ100V"].weights == Weights()

    _feed(pm, confident_digits)
    pm.on_tick("1HZ100V", _price(1), 200.0)
    out = pm.evaluate("1HZ100V", 1)
    assert out is not None and not out.won
    assert store.save_calls == 1
    assert pm.instruments["1HZ100V"].weights.recency == pytest.approx(0.9)


def test_weights_loaded_and_clamped_from_store(tmp_path: Path) -> None:
    store = WeightStore(str(tmp_path))
    store.save("1HZ100V", Weights(ldf=5.0, recency=0.1, pf=1.3))
    pm = PipelineManager(FAST, symbols=["1HZ100V", "1HZ10V"], store=store)
    assert pm.instruments["1HZ100V"].weights == Weights(ldf=2.0, recency=0.5, pf=1.3)
    assert pm.instruments["1HZ10V"].weights == Weights()


def test_deferred_evaluation_learns_and_persists(tmp_path: Path, confident_digits) -> None:
    events: list = []
    store = WeightStore(str(tmp_path))

    async def scenario() -> PipelineManager:
        pm = _manager(events, store=store)
        _feed(pm, confident_digits)
        pm.on_tick("1HZ100V", _price(9), 200.0)
        await asyncio.sleep(0.3)
        return pm

    pm = asyncio.run(scenario())
    inst = pm.instruments["1HZ100V"]
    assert inst.active_signal is None
    assert inst.state.value == "ANALYZING"
    assert [e for e in events if e["type"] == "outcome"][0]["won"] is True
    assert store.load("1HZ100V") == inst.weights


def test_removed_instrument_cancels_pending_evaluation(confident_digits) -> None:
    events: list = []

    async def scenario() -> PipelineManager:
        pm = _manager(events)
        _feed(pm, confident_digits)
        assert pm.instruments["1HZ100V"].active_signal is not None
        pm.remove_instrument("1HZ100V")
        await asyncio.sleep(0.2)
        return pm

    pm = asyncio.run(scenario())
    assert "1HZ100V" not in pm.instruments
    assert not any(e["type"] == "outcome" for e in events)


def test_snapshot_reports_instruments(confident_digits) -> None:
    pm = _manager([])
    _feed(pm, confident_digits)
    snap = pm.snapshot()
    row = snap["instruments"][0]
    assert row["symbol"] == "1HZ100V"
    assert row["history"] == 100
    assert row["active_signal"]["digit"] == 9


def test_signal_lifecycle_is_journaled(tmp_path: Path, confident_digits) -> None:
    journal = RuntimeEventLogger(str(tmp_path))
    pm = _manager([], events=journal)
    _feed(pm, confident_digits)
    pm.on_tick("1HZ100V", _price(2), 200.0)
    pm.evaluate("1HZ100V", 1)
    names = [json.loads(line)["event"] for line in journal.path.read_text().splitlines()]
    assert names == ["signal.open", "signal.resolve"]


def test_huge_quote_does_not_poison_history() -> None:
    events: list = []
    pm = _manager(events)
    pm.on_tick("1HZ100V", 1e30, 0.0)
    pm.on_tick("1HZ100V", 812.37, 1.0)
    inst = pm.instruments["1HZ100V"]
    assert len(inst.history) == 2
    assert len(inst.history.digits()) == 2
    assert [e["digit"] for e in events if e["type"] == "tick"] == [0, 7]
