"""Utility functions for the DMR exploration package."""

from .config import Config, load_config
from .logging_utils import set_level, setup_logger

__all__ = ["Config", "load_config", "set_level", "setup_logger"]
