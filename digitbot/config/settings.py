from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


DEFAULT_SYMBOLS = ("1HZ100V", "1HZ75V", "1HZ50V", "1HZ25V", "1HZ10V")

SYMBOL_NAMES = {
    "1HZ100V": "Vol 100 (1s)",
    "1HZ75V": "Vol 75 (1s)",
    "1HZ50V": "Vol 50 (1s)",
    "1HZ25V": "Vol 25 (1s)",
    "1HZ10V": "Vol 10 (1s)",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = int(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_float(name: str, default: float, min_value: float | None = None) -> float:
    raw = os.environ.get(name)
    if raw is None:
        value = default
    else:
        value = float(raw)
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default


@dataclass(frozen=True)
class PipelineConfig:
    analysis_ticks: int = 100
    stability_ticks: int = 150
    history_slack: int = 5
    volatility_window: int = 30
    volatility_threshold: float = 2.85
    certainty_ratio: float = 1.5
    entry_window_sec: float = 5.0
    kalman_r: float = 0.01
    kalman_q: float = 0.1
    learning_step: float = 0.05
    weight_min: float = 0.5
    weight_max: float = 2.0

    @property
    def history_max(self) -> int:
        return max(self.analysis_ticks, self.stability_ticks) + self.history_slack


@dataclass(frozen=True)
class Settings:
    data_dir: str
    log_level: str
    dashboard_enabled: bool
    dashboard_port: int
    events_enabled: bool
    symbols: tuple[str, ...]
    deriv_app_id: int
    deriv_api_token: str
    feed_url: str
    feed_reconnect_sec: float
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


def load_pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        analysis_ticks=_env_int("ANALYSIS_TICKS", 100, min_value=2),
        stability_ticks=_env_int("STABILITY_TICKS", 150, min_value=2),
        history_slack=_env_int("HISTORY_SLACK", 5, min_value=0),
        volatility_window=_env_int("VOLATILITY_WINDOW", 30, min_value=1),
        volatility_threshold=_env_float("VOLATILITY_THRESHOLD", 2.85, min_value=0.0),
        certainty_ratio=_env_float("CERTAINTY_RATIO", 1.5, min_value=1.0),
        entry_window_sec=_env_float("ENTRY_WINDOW_SEC", 5.0, min_value=0.0),
        kalman_r=_env_float("KALMAN_R", 0.01, min_value=0.0),
        kalman_q=_env_float("KALMAN_Q", 0.1, min_value=1e-9),
        learning_step=_env_float("LEARNING_STEP", 0.05, min_value=0.0),
        weight_min=_env_float("WEIGHT_MIN", 0.5, min_value=0.0),
        weight_max=_env_float("WEIGHT_MAX", 2.0, min_value=0.0),
    )


def load_settings() -> Settings:
    load_dotenv(os.path.expanduser(os.environ.get("DIGITBOT_ENV_FILE", "~/.digitbot.env")))
    app_id = _env_int("DERIV_APP_ID", 1089, min_value=1)
    return Settings(
        data_dir=os.environ.get("DATA_DIR", "./data"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper(),
        dashboard_enabled=_env_bool("DASHBOARD_ENABLED", True),
        dashboard_port=_env_int("DASHBOARD_PORT", 8080, min_value=1),
        events_enabled=_env_bool("EVENTS_ENABLED", True),
        symbols=_env_list("SYMBOLS", DEFAULT_SYMBOLS),
        deriv_app_id=app_id,
        deriv_api_token=os.environ.get("DERIV_API_TOKEN", "").strip(),
        feed_url=os.environ.get(
            "FEED_URL", f"wss://ws.binaryws.com/websockets/v3?app_id={app_id}"
        ).strip(),
        feed_reconnect_sec=_env_float("FEED_RECONNECT_SEC", 5.0, min_value=0.5),
        pipeline=load_pipeline_config(),
    )
