"""
Config Module
Configuration management.
"""

from .settings import (
    ConfigManager,
    Config,
    MODE_ON_DEMAND,
    MODE_PRECOMPUTED,
    MODES,
)

__all__ = [
    "ConfigManager",
    "Config",
    "MODE_ON_DEMAND",
    "MODE_PRECOMPUTED",
    "MODES",
]
