"""Cross-cutting configuration and logging helpers."""

from .config import BaseConfig, get_config
from .logger import configure_logging

__all__ = ["BaseConfig", "get_config", "configure_logging"]
