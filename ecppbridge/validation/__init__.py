"""
ECPP Bridge validation module.

This module provides configuration validation and schema enforcement.
"""

from ecppbridge.validation.config import BridgeConfig, Config, ConfigError

__all__ = ["BridgeConfig", "Config", "ConfigError"]
