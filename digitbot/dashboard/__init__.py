from .broadcaster import EventBroadcaster
from .server import build_app, run_dashboard

__all__ = ["EventBroadcaster", "build_app", "run_dashboard"]
