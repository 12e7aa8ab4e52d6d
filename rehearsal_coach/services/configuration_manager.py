"""Configuration Manager for handling application configuration and settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..utils.exceptions import ConfigurationError
from ..utils.logging import get_logger


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: str = "WARNING"
    format: str = "text"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class PerformanceConfig:
    """Performance configuration settings."""

    analysis_timeout: float = 120.0  # seconds
    question_count: int = 5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class StorageConfig:
    """Storage configuration settings."""

    base_path: str = "data"
    backup_enabled: bool = True
    max_backup_count: int = 10

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class UIConfig:
    """Shell presentation settings."""

    default_theme: str = "dark"
    preferences_file: str = "preferences.json"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UIConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class ScoringProviderConfig(BaseModel):
    """Chat-completion provider used for question generation and scoring."""

    name: str = Field(default="deepseek", description="Provider name")
    api_key: str = Field(default="", description="API key for the provider")
    base_url: str = Field(default="https://api.deepseek.com/v1", description="Base URL for API calls")
    model: str = Field(default="deepseek-chat", description="Model name to use")
    timeout: int = Field(default=60, description="Request timeout in seconds")
    max_tokens: int = Field(default=2000, description="Maximum tokens for responses")
    temperature: float = Field(default=0.4, description="Temperature for generation")
    retries: int = Field(default=2, description="Number of retry attempts")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v):
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v < 1:
            raise ValueError("Timeout must be at least 1 second")
        return v


class AppConfig(BaseModel):
    """Main application configuration model."""

    app_name: str = Field(default="Rehearsal Coach", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    scoring: ScoringProviderConfig = Field(default_factory=ScoringProviderConfig)


class ConfigurationManager:
    """Manages application configuration and settings."""

    def __init__(self, config_path: str = "config", env_file: str = ".env"):
        """Initialize the configuration manager.

        Args:
            config_path: Path to configuration directory.
            env_file: Path to environment file.
        """
        self.config_path = Path(config_path)
        self.env_file = Path(env_file)
        self.config: Optional[AppConfig] = None
        self.logger = get_logger("configuration_manager")

    def initialize(self) -> None:
        """Load environment, configuration files and validate the result."""
        try:
            self._load_environment_variables()
            self._load_configuration_files()
            self._validate_configuration()
            self.logger.info("ConfigurationManager initialized successfully")
        except ConfigurationError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to initialize ConfigurationManager: {str(e)}")
            raise ConfigurationError(f"Configuration initialization failed: {str(e)}")

    def _load_environment_variables(self) -> None:
        """Load environment variables from .env file."""
        try:
            if self.env_file.exists():
                from dotenv import load_dotenv
                load_dotenv(self.env_file)
                self.logger.info(f"Loaded environment variables from {self.env_file}")
        except Exception as e:
            self.logger.warning(f"Failed to load environment variables: {str(e)}")

    def _load_configuration_files(self) -> None:
        """Load configuration from YAML files on top of the defaults."""
        try:
            config_data = AppConfig().model_dump()

            main_config_file = self.config_path / "config.yaml"
            if main_config_file.exists():
                config_data = self._merge(config_data, self._load_yaml_file(main_config_file))
                self.logger.info(f"Loaded main configuration from {main_config_file}")

            environment = os.getenv("ENVIRONMENT", config_data.get("environment", "development"))
            env_config_file = self.config_path / f"config.{environment}.yaml"
            if env_config_file.exists():
                config_data = self._merge(config_data, self._load_yaml_file(env_config_file))
                self.logger.info(f"Loaded environment configuration from {env_config_file}")

            scoring = config_data.get("scoring", {})
            scoring["api_key"] = self._substitute_env(scoring.get("api_key", ""))
            if not scoring["api_key"]:
                scoring["api_key"] = os.getenv("SCORING_API_KEY", "")

            self.config = AppConfig.model_validate(config_data)

        except Exception as e:
            self.logger.error(f"Failed to load configuration files: {str(e)}")
            self.config = AppConfig()
            self.logger.warning("Using default configuration due to load failure")

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge ``override`` into ``base``; unknown sections are ignored."""
        for key, value in override.items():
            if key not in base:
                self.logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            if isinstance(base[key], dict) and isinstance(value, dict):
                base[key] = self._merge(dict(base[key]), value)
            else:
                base[key] = value
        return base

    def _substitute_env(self, value: Any) -> Any:
        """Resolve ``${VAR}`` references against the environment."""
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var_name = value[2:-1]
            resolved = os.getenv(env_var_name, "")
            if not resolved:
                self.logger.warning(f"Environment variable {env_var_name} is not set")
            return resolved
        return value

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except Exception as e:
            self.logger.error(f"Failed to load YAML file {file_path}: {str(e)}")
            return {}

    def _validate_configuration(self) -> None:
        """Validate the loaded configuration."""
        if not self.config:
            raise ConfigurationError("Configuration not loaded")

        if self.config.performance.analysis_timeout <= 0:
            raise ConfigurationError("analysis_timeout must be positive", config_key="performance.analysis_timeout")
        if self.config.performance.question_count < 1:
            raise ConfigurationError("question_count must be at least 1", config_key="performance.question_count")
        if self.config.ui.default_theme not in ("light", "dark"):
            raise ConfigurationError(
                f"default_theme must be 'light' or 'dark', got {self.config.ui.default_theme!r}",
                config_key="ui.default_theme",
            )
        if not self.config.scoring.api_key:
            self.logger.warning(f"Scoring provider {self.config.scoring.name} has no API key")

        self.logger.info("Configuration validation completed successfully")

    def get_config(self) -> AppConfig:
        """Get the current configuration.

        Raises:
            ConfigurationError: If configuration is not loaded.
        """
        if not self.config:
            raise ConfigurationError("Configuration not loaded")
        return self.config

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a specific configuration setting using dot notation."""
        if not self.config:
            return default

        value: Any = self.config
        for k in key.split("."):
            if hasattr(value, k):
                value = getattr(value, k)
            elif isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration as keyword arguments for setup_logging."""
        logging_config = self.config.logging if self.config else LoggingConfig()
        return {
            "level": logging_config.level,
            "log_file": logging_config.file_path,
            "enable_console": logging_config.console_output,
            "enable_file": logging_config.file_output and bool(logging_config.file_path),
            "structured": logging_config.format == "json",
            "max_file_size": logging_config.max_file_size,
            "backup_count": logging_config.backup_count,
        }

    def get_storage_config(self) -> Dict[str, Any]:
        """Get storage configuration."""
        if not self.config:
            return {}
        return {
            "base_path": self.config.storage.base_path,
            "backup_enabled": self.config.storage.backup_enabled,
            "max_backup_count": self.config.storage.max_backup_count,
        }
