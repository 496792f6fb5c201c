from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from digitbot.domain import Weights, WeightStoreError

log = logging.getLogger(__name__)


class WeightStore:
    """JSON file of learned model weights, keyed by instrument symbol."""

    def __init__(self, data_dir: str, filename: str = "weights.json"):
        self.path = Path(data_dir) / filename
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("weights file is not a JSON object")
        return data

    def load(self, symbol: str) -> Weights | None:
        with self._lock:
            try:
                raw = self._read_all().get(symbol)
            except (OSError, ValueError) as exc:
                log.warning("weight store read failed path=%s err=%s", self.path, exc)
                return None
        if not isinstance(raw, dict):
            return None
        return Weights.from_dict(raw)

    def save(self, symbol: str, weights: Weights) -> None:
        with self._lock:
            try:
                try:
                    data = self._read_all()
                except ValueError:
                    log.warning("weight store unreadable, rewriting path=%s", self.path)
                    data = {}
                data[symbol] = weights.as_dict()
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp = self.path.with_suffix(".tmp")
                tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
                tmp.replace(self.path)
            except OSError as exc:
                raise WeightStoreError(f"could not save weights for {symbol}: {exc}") from exc
