"""Configuration loading for the masking engine."""

from .config_manager import (
    ConfigurationManager, FieldRuleConfig, ForEachConfig, LoggingConfig,
    MaskingConfig, SeedingConfig
)

__all__ = [
    "ConfigurationManager",
    "FieldRuleConfig",
    "ForEachConfig",
    "LoggingConfig",
    "MaskingConfig",
    "SeedingConfig",
]
