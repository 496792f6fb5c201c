from .log import get_logger
from .telemetry import RuntimeEventLogger

__all__ = ["get_logger", "RuntimeEventLogger"]
