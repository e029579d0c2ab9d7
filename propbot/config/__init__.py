"""Configuration module for propbot."""

from propbot.config.loader import get_config_path, load_config
from propbot.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
