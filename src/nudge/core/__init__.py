"""Core application components."""

from nudge.core.config import Config, FocusConfig, get_config

__all__ = ["Config", "FocusConfig", "get_config"]
