"""Configuration management for payee duplicate detection."""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .deduplication.models import DuplicateDetectionConfig
from .errors import ConfigurationError

_TRUTHY = ("true", "1", "yes")


class OracleConfig(BaseModel):
    """Settings for the LLM arbitration oracle."""

    model_config = ConfigDict(extra="forbid")

    provider: Literal["openai", "anthropic"] = "openai"
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = Field(0.1, ge=0, le=2)
    max_tokens: int = Field(300, ge=1)
    timeout: float = Field(30.0, gt=0)
    max_requests_per_minute: int = Field(60, ge=1)


class LoggingConfig(BaseModel):
    """Log output settings."""

    model_config = ConfigDict(extra="forbid")

    format: Literal["json", "text"] = "text"
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = ConfigDict(extra="forbid")

    detection: DuplicateDetectionConfig = Field(default_factory=DuplicateDetectionConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages configuration loading and validation."""

    DEFAULT_CONFIG = {
        "detection": {},
        "oracle": {
            "provider": "openai",
            "temperature": 0.1,
            "max_tokens": 300,
            "timeout": 30.0,
            "max_requests_per_minute": 60,
        },
        "logging": {
            "format": "text",
            "level": "INFO",
        },
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config manager.

        Args:
            config_path: Path to a JSON config file. If None, uses defaults + env vars
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """Load configuration from file and environment.

        Raises:
            ConfigurationError: If the file is unreadable or a value is invalid
        """
        if self._config:
            return self._config

        # Start with defaults
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        # Load from file if provided
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    file_config = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Cannot read config file {self.config_path}: {e}"
                ) from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file {self.config_path} must contain a JSON object"
                )
            config_dict = self._deep_merge(config_dict, file_config)

        # Override with environment variables
        config_dict = self._apply_env_overrides(config_dict)

        # Create and validate config model
        detection = DuplicateDetectionConfig.from_overrides(config_dict.pop("detection", None))
        try:
            self._config = AppConfig(detection=detection, **config_dict)
        except ValidationError as e:
            first = e.errors()[0]
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                config_key=".".join(str(part) for part in first.get("loc", ())) or None,
            ) from e
        return self._config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        oracle = config.setdefault("oracle", {})
        detection = config.setdefault("detection", {})
        logging_config = config.setdefault("logging", {})

        provider = os.getenv("PAYEE_DEDUPE_PROVIDER")
        if provider:
            oracle["provider"] = provider.lower()

        model = os.getenv("PAYEE_DEDUPE_MODEL")
        if model:
            oracle["model"] = model

        # API key for whichever provider is active
        if not oracle.get("api_key"):
            env_key = (
                "ANTHROPIC_API_KEY" if oracle.get("provider") == "anthropic" else "OPENAI_API_KEY"
            )
            api_key = os.getenv(env_key)
            if api_key:
                oracle["api_key"] = api_key

        # Thresholds
        for env_key, field_name in (
            ("PAYEE_DEDUPE_HIGH_THRESHOLD", "high_confidence_threshold"),
            ("PAYEE_DEDUPE_LOW_THRESHOLD", "low_confidence_threshold"),
        ):
            value = os.getenv(env_key)
            if value:
                try:
                    detection[field_name] = float(value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{env_key} must be a number, got {value!r}", config_key=field_name
                    ) from e

        if os.getenv("PAYEE_DEDUPE_DISABLE_AI", "").lower() in _TRUTHY:
            detection["enable_ai_judgment"] = False

        # Logging
        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            logging_config["level"] = log_level.upper()

        log_format = os.getenv("LOG_FORMAT")
        if log_format:
            logging_config["format"] = log_format.lower()

        return config

    def save_template(self, path: str):
        """Save a configuration template file."""
        template = {
            "detection": DuplicateDetectionConfig().model_dump(),
            "oracle": {
                **self.DEFAULT_CONFIG["oracle"],
                "model": "gpt-4o-mini",
                "api_key": "YOUR_OPENAI_API_KEY",
            },
            "logging": self.DEFAULT_CONFIG["logging"],
        }

        with open(path, "w") as f:
            json.dump(template, f, indent=2)

    def validate(self) -> bool:
        """Validate the current configuration.

        Raises:
            ConfigurationError: If AI judgment is enabled without an API key
        """
        config = self.load()

        if config.detection.enable_ai_judgment and not config.oracle.api_key:
            raise ConfigurationError(
                f"AI judgment is enabled but no {config.oracle.provider} API key is configured",
                config_key="oracle.api_key",
            )

        return True

    def oracle_settings(self) -> Dict[str, Any]:
        """Oracle settings in the form ``LLMDuplicateJudge`` expects."""
        return self.config.oracle.model_dump()

    @property
    def config(self) -> AppConfig:
        """Get the loaded configuration."""
        if not self._config:
            self._config = self.load()
        return self._config
