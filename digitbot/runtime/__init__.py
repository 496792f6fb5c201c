from .pipeline import InstrumentState, PipelineManager
from .supervisor import LoopSupervisor

__all__ = ["InstrumentState", "PipelineManager", "LoopSupervisor"]
