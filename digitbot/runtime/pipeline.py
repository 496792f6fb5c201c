from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from digitbot.config import PipelineConfig
from digitbot.domain import (
    REASON_CALIBRATING,
    ActiveSignal,
    InvalidObservation,
    Outcome,
    PipelineState,
    Prediction,
    Weights,
)
from digitbot.infra import RuntimeEventLogger
from digitbot.strategy import (
    AdaptiveLearner,
    HistoryBuffer,
    KalmanSmoother,
    PredictionEngine,
    last_digit,
)

Publisher = Callable[[dict[str, Any]], None]


@dataclass
class InstrumentState:
    symbol: str
    history: HistoryBuffer
    smoother: KalmanSmoother
    weights: Weights
    active_signal: ActiveSignal | None = None
    signal_epoch: int = 0
    wins: int = 0
    losses: int = 0
    last_reason: str = ""

    @property
    def state(self) -> PipelineState:
        if self.active_signal is not None:
            return PipelineState.SIGNAL_ACTIVE
        if self.last_reason == REASON_CALIBRATING or not self.last_reason:
            return PipelineState.CALIBRATING
        return PipelineState.ANALYZING

    def summary(self) -> dict[str, Any]:
        sig = self.active_signal
        return {
            "symbol": self.symbol,
            "state": self.state.value,
            "reason": self.last_reason,
            "history": len(self.history),
            "estimate": self.smoother.estimate,
            "weights": self.weights.as_dict(),
            "wins": self.wins,
            "losses": self.losses,
            "active_signal": None
            if sig is None
            else {
                "digit": sig.predicted_digit,
                "confidence": sig.confidence,
                "models": list(sig.top_models),
                "opened_at": sig.opened_at,
                "epoch": sig.epoch,
            },
        }


class PipelineManager:
    """Owns every instrument's state and drives tick -> prediction -> evaluation -> learning.

    All handlers are plain callbacks on the asyncio loop, so work for one
    instrument never interleaves. Pending evaluations are ``TimerHandle``s
    keyed by symbol and carry the signal epoch they were opened for; they
    re-read the instrument when they fire.
    """

    def __init__(
        self,
        cfg: PipelineConfig,
        *,
        symbols: Iterable[str],
        store=None,
        publish: Publisher | None = None,
        events: RuntimeEventLogger | None = None,
        log: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cfg = cfg
        self.store = store
        self.publish = publish
        self.events = events
        self.log = log or logging.getLogger(__name__)
        self.clock = clock
        self.engine = PredictionEngine(cfg)
        self.learner = AdaptiveLearner(cfg)
        self.instruments: dict[str, InstrumentState] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        for symbol in symbols:
            self.add_instrument(symbol)

    # ------------------------------------------------------------------
    # Instrument registry
    # ------------------------------------------------------------------

    def add_instrument(self, symbol: str) -> InstrumentState:
        if symbol in self.instruments:
            return self.instruments[symbol]
        inst = InstrumentState(
            symbol=symbol,
            history=HistoryBuffer(self.cfg.history_max),
            smoother=KalmanSmoother(self.cfg.kalman_r, self.cfg.kalman_q),
            weights=self._load_weights(symbol),
        )
        self.instruments[symbol] = inst
        return inst

    def remove_instrument(self, symbol: str) -> None:
        self._cancel_timer(symbol)
        self.instruments.pop(symbol, None)

    def close(self) -> None:
        for symbol in list(self._timers):
            self._cancel_timer(symbol)

    def _cancel_timer(self, symbol: str) -> None:
        handle = self._timers.pop(symbol, None)
        if handle is not None:
            handle.cancel()

    def _load_weights(self, symbol: str) -> Weights:
        if self.store is None:
            return Weights()
        try:
            saved = self.store.load(symbol)
        except Exception as exc:
            self.log.warning("weights load failed symbol=%s err=%s; using defaults", symbol, exc)
            return Weights()
        if saved is None:
            return Weights()
        self.log.info("loaded weights symbol=%s %s", symbol, saved.as_dict())
        return self.learner.clamp(saved)

    # ------------------------------------------------------------------
    # Tick path
    # ------------------------------------------------------------------

    def on_tick(self, symbol: str, price, timestamp: float | None = None) -> None:
        inst = self.instruments.get(symbol)
        if inst is None:
            return
        try:
            raw_digit = last_digit(price)
            smoothed = inst.smoother.update(price)
            last_digit(smoothed)
        except InvalidObservation as exc:
            self.log.debug("rejected tick symbol=%s: %s", symbol, exc)
            return
        inst.history.append(smoothed)
        ts = self.clock() if timestamp is None else float(timestamp)

        self._publish({"type": "tick", "symbol": symbol, "digit": raw_digit, "ts": ts})
        self._analyze(inst, ts)

    def _analyze(self, inst: InstrumentState, ts: float) -> None:
        if inst.active_signal is not None:
            return

        prediction = self.engine.predict(inst.history.digits(), inst.weights)
        inst.last_reason = prediction.reason
        if prediction.confirmed:
            self._open_signal(inst, prediction, ts)
            return

        state = PipelineState.CALIBRATING if prediction.reason == REASON_CALIBRATING else PipelineState.ANALYZING
        self._publish({
            "type": "status",
            "symbol": inst.symbol,
            "state": state.value,
            "reason": prediction.reason,
            "ts": ts,
        })

    def _open_signal(self, inst: InstrumentState, prediction: Prediction, ts: float) -> None:
        inst.signal_epoch += 1
        inst.active_signal = ActiveSignal(
            predicted_digit=prediction.digit,
            model_scores=prediction.model_scores,
            opened_at=ts,
            epoch=inst.signal_epoch,
            confidence=prediction.confidence,
            top_models=prediction.top_models,
        )
        self.log.info(
            "signal symbol=%s digit=%s confidence=%s models=%s",
            inst.symbol,
            prediction.digit,
            prediction.confidence,
            ",".join(prediction.top_models),
        )
        self._publish({
            "type": "signal",
            "symbol": inst.symbol,
            "digit": prediction.digit,
            "confidence": prediction.confidence,
            "models": list(prediction.top_models),
            "ts": ts,
        })
        self._emit_event(
            "signal.open",
            symbol=inst.symbol,
            epoch=inst.signal_epoch,
            digit=prediction.digit,
            confidence=prediction.confidence,
        )
        self._schedule_evaluation(inst.symbol, inst.signal_epoch)

    def _schedule_evaluation(self, symbol: str, epoch: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.log.debug("no running loop; evaluation of %s#%s left to caller", symbol, epoch)
            return
        self._cancel_timer(symbol)
        self._timers[symbol] = loop.call_later(
            self.cfg.entry_window_sec, self.evaluate, symbol, epoch
        )

    # ------------------------------------------------------------------
    # Evaluation and learning
    # ------------------------------------------------------------------

    def evaluate(self, symbol: str, epoch: int) -> Outcome | None:
        """Resolve the signal opened as ``epoch`` against the current last digit."""
        inst = self.instruments.get(symbol)
        if inst is None:
            return None
        sig = inst.active_signal
        if sig is None or sig.epoch != epoch:
            return None
        self._timers.pop(symbol, None)

        realized = inst.history.last_digit()
        outcome = self.learner.learn(inst.weights, sig, realized)
        inst.weights = outcome.weights
        inst.active_signal = None
        if outcome.won:
            inst.wins += 1
        else:
            inst.losses += 1

        w = outcome.weights
        self.log.info(
            "%s symbol=%s predicted=%s actual=%s weights ldf=%.2f recency=%.2f pf=%.2f",
            "WIN" if outcome.won else "LOSS",
            symbol,
            outcome.predicted_digit,
            outcome.actual_digit,
            w.ldf,
            w.recency,
            w.pf,
        )
        self._publish({
            "type": "outcome",
            "symbol": symbol,
            "predicted": outcome.predicted_digit,
            "actual": outcome.actual_digit,
            "won": outcome.won,
            "weights": w.as_dict(),
            "ts": self.clock(),
        })
        self._emit_event(
            "signal.resolve",
            symbol=symbol,
            epoch=epoch,
            won=outcome.won,
            predicted=outcome.predicted_digit,
            actual=outcome.actual_digit,
            weights=w.as_dict(),
        )
        self._persist(symbol, w)
        return outcome

    def _persist(self, symbol: str, weights: Weights) -> None:
        if self.store is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save_weights(symbol, weights)
            return
        loop.run_in_executor(None, self._save_weights, symbol, weights)

    def _save_weights(self, symbol: str, weights: Weights) -> None:
        try:
            self.store.save(symbol, weights)
        except Exception as exc:
            self.log.error("weights save failed symbol=%s err=%s", symbol, exc)
            self._emit_event("weights.save_error", symbol=symbol, error=str(exc))

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _publish(self, event: dict[str, Any]) -> None:
        if self.publish is None:
            return
        try:
            self.publish(event)
        except Exception as exc:
            self.log.warning("publish failed type=%s err=%s", event.get("type"), exc)

    def _emit_event(self, event: str, **fields: Any) -> None:
        if self.events is None:
            return
        try:
            self.events.emit(event, **fields)
        except OSError as exc:
            self.log.warning("event log write failed event=%s err=%s", event, exc)

    def snapshot(self) -> dict[str, Any]:
        return {
            "ok": True,
            "ts": self.clock(),
            "instruments": [inst.summary() for inst in self.instruments.values()],
        }
