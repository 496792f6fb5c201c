from .settings import DEFAULT_SYMBOLS, SYMBOL_NAMES, PipelineConfig, Settings, load_pipeline_config, load_settings

__all__ = [
    "DEFAULT_SYMBOLS",
    "SYMBOL_NAMES",
    "PipelineConfig",
    "Settings",
    "load_pipeline_config",
    "load_settings",
]
