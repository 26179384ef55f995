"""Configuration: environment settings plus the YAML pipeline config."""

from people_filter.config.settings import (
    Config,
    LLMConfig,
    PipelineOptions,
    Settings,
    Strategy,
    get_settings,
)

__all__ = ["Config", "LLMConfig", "PipelineOptions", "Settings", "Strategy", "get_settings"]
