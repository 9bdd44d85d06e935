"""Configuration system."""

from binary_market.config.loader import load_config
from binary_market.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
