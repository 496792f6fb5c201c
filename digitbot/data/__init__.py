from .tick_feed import DerivTickFeed
from .weight_store import WeightStore

__all__ = ["DerivTickFeed", "WeightStore"]
