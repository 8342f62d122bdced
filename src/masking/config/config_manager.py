"""Configuration manager for the masking engine."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

UNMAPPED_POLICIES = ("include", "exclude", "remove")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: Optional[str] = None
    handlers: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class SeedingConfig:
    """Deterministic seeding configuration.

    ``secret`` keys the HMAC seed provider attached to rules marked
    ``seeded: true``. With ``key_field`` set, seeds derive from that record
    field instead of the masked value, so every seeded rule of one entity
    draws from the same seed.
    """
    secret: Optional[str] = None
    key_field: Optional[str] = None


@dataclass
class FieldRuleConfig:
    """Ordered rule definitions for one field."""
    field: str
    rules: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ForEachConfig:
    """Child masker applied to a nested record or to each element of a list."""
    field: str
    unmapped_policy: str = "include"
    fields: List[FieldRuleConfig] = field(default_factory=list)
    for_each: List["ForEachConfig"] = field(default_factory=list)


@dataclass
class MaskingConfig:
    """Main configuration class for the masking engine."""
    unmapped_policy: str = "exclude"
    fields: List[FieldRuleConfig] = field(default_factory=list)
    for_each: List[ForEachConfig] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    seeding: SeedingConfig = field(default_factory=SeedingConfig)


class ConfigurationManager:
    """Manages loading and validation of configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_path: Path to the YAML configuration file. If not provided,
                        will look for masking.yaml in the default locations.
        """
        self.config_path = config_path
        self._load_environment()
        self.config = self._load_config()

    def _load_environment(self) -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_config(self) -> MaskingConfig:
        """Load configuration from YAML file and environment variables.

        Returns:
            MaskingConfig: The loaded and validated configuration.

        Raises:
            FileNotFoundError: If the configuration file cannot be found.
            ValueError: If the configuration is invalid.
        """
        config_dict = self._load_yaml_config()
        self._override_from_env(config_dict)

        config = self._create_config_objects(config_dict)
        self._validate_config(config)
        return config

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Returns:
            Dict[str, Any]: The loaded configuration dictionary.

        Raises:
            FileNotFoundError: If the configuration file cannot be found.
        """
        if self.config_path:
            config_path = Path(self.config_path)
        else:
            config_path = self._find_config_file()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")
        return loaded

    def _find_config_file(self) -> Path:
        """Find the configuration file in default locations.

        Raises:
            FileNotFoundError: If no configuration file is found.
        """
        default_locations = [
            Path("masking.yaml"),
            Path("config/masking.yaml"),
            Path(os.environ.get("MASKING_CONFIG_PATH", "masking.yaml")),
        ]

        for path in default_locations:
            if path.exists():
                return path

        raise FileNotFoundError("No configuration file found in default locations")

    def _override_from_env(self, config: Dict[str, Any]) -> None:
        """Override configuration values with environment variables.

        Args:
            config: Configuration dictionary to update.
        """
        if log_level := os.getenv("MASKING_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level

        if policy := os.getenv("MASKING_UNMAPPED_POLICY"):
            config["unmapped_policy"] = policy

        if secret := os.getenv("MASKING_SEED_SECRET"):
            config.setdefault("seeding", {})["secret"] = secret

    def _create_field_rules(self, fields: List[Dict[str, Any]]) -> List[FieldRuleConfig]:
        field_configs = []
        for entry in fields or []:
            if "field" not in entry:
                raise ValueError("Field rule entry requires a 'field' name")
            field_configs.append(FieldRuleConfig(
                field=entry["field"],
                rules=[dict(rule) for rule in entry.get("rules", [])]
            ))
        return field_configs

    def _create_for_each(self, entries: List[Dict[str, Any]]) -> List[ForEachConfig]:
        for_each_configs = []
        for entry in entries or []:
            if "field" not in entry:
                raise ValueError("for_each entry requires a 'field' name")
            for_each_configs.append(ForEachConfig(
                field=entry["field"],
                unmapped_policy=str(entry.get("unmapped_policy", "include")).lower(),
                fields=self._create_field_rules(entry.get("fields", [])),
                for_each=self._create_for_each(entry.get("for_each", []))
            ))
        return for_each_configs

    def _create_config_objects(self, config: Dict[str, Any]) -> MaskingConfig:
        """Create configuration objects from dictionary.

        Args:
            config: Configuration dictionary.

        Returns:
            MaskingConfig: The created configuration object.

        Raises:
            ValueError: If the dictionary cannot be turned into config objects.
        """
        try:
            logging_dict = config.get("logging", {}) or {}
            logging_config = LoggingConfig(
                level=str(logging_dict.get("level", "INFO")).upper(),
                format=logging_dict.get("format"),
                handlers=logging_dict.get("handlers", [])
            )

            seeding_dict = config.get("seeding", {}) or {}
            seeding_config = SeedingConfig(
                secret=seeding_dict.get("secret"),
                key_field=seeding_dict.get("key_field")
            )

            return MaskingConfig(
                unmapped_policy=str(config.get("unmapped_policy", "exclude")).lower(),
                fields=self._create_field_rules(config.get("fields", [])),
                for_each=self._create_for_each(config.get("for_each", [])),
                logging=logging_config,
                seeding=seeding_config
            )

        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to create configuration objects: {str(e)}") from e

    def _validate_field_rules(self, fields: List[FieldRuleConfig], uses_seed: List[bool]) -> None:
        for field_config in fields:
            if not field_config.field:
                raise ValueError("Field name cannot be empty")
            for rule in field_config.rules:
                if not isinstance(rule.get("type"), str) or not rule["type"]:
                    raise ValueError(f"Rule for field '{field_config.field}' requires a 'type'")
                if rule.get("seeded"):
                    uses_seed.append(True)

    def _validate_for_each(self, entries: List[ForEachConfig], uses_seed: List[bool]) -> None:
        for entry in entries:
            if entry.unmapped_policy not in UNMAPPED_POLICIES:
                raise ValueError(
                    f"Invalid unmapped_policy for '{entry.field}': {entry.unmapped_policy}"
                )
            self._validate_field_rules(entry.fields, uses_seed)
            self._validate_for_each(entry.for_each, uses_seed)

    def _validate_config(self, config: MaskingConfig) -> None:
        """Validate configuration values.

        Args:
            config: The configuration to validate.

        Raises:
            ValueError: If configuration values are invalid.
        """
        if config.unmapped_policy not in UNMAPPED_POLICIES:
            raise ValueError(
                f"unmapped_policy must be one of {', '.join(UNMAPPED_POLICIES)}"
            )

        if not isinstance(logging.getLevelName(config.logging.level), int):
            raise ValueError(f"Invalid log level: {config.logging.level}")

        for handler in config.logging.handlers:
            if handler.get("type") == "file" and not handler.get("filename"):
                raise ValueError("File log handler requires a filename")

        uses_seed: List[bool] = []
        self._validate_field_rules(config.fields, uses_seed)
        self._validate_for_each(config.for_each, uses_seed)

        if uses_seed and not config.seeding.secret:
            raise ValueError("Seeded rules require seeding.secret or MASKING_SEED_SECRET")

    def get_config(self) -> MaskingConfig:
        """Get the loaded configuration.

        Returns:
            MaskingConfig: The loaded configuration.
        """
        return self.config
