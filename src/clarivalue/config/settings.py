"""
Pydantic settings models for ClariValue configuration.

This module provides type-safe configuration with validation using Pydantic.
Configuration is loaded from config.yaml with environment variable substitution.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clarivalue.domain.models.valuation import BusinessPattern

logger = logging.getLogger(__name__)

# =============================================================================
# Application Settings
# =============================================================================


class ApplicationSettings(BaseSettings):
    """Application metadata and environment configuration."""

    model_config = SettingsConfigDict(env_prefix="APP_")

    name: str = Field(default="ClariValue")
    version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is development or production."""
        if v not in ["development", "production"]:
            raise ValueError("environment must be 'development' or 'production'")
        return v


# =============================================================================
# Remote Analysis Settings
# =============================================================================


class RemoteSettings(BaseSettings):
    """Analysis service connection and retry configuration."""

    model_config = SettingsConfigDict(env_prefix="REMOTE_")

    base_url: str = Field(default="http://localhost:54321")
    api_key: str = Field(default="")
    timeout: int = Field(default=300)
    max_retries: int = Field(default=3)
    base_delay: float = Field(default=1.0)
    retry_policy: str = Field(default="transient")
    extraction_function: str = Field(default="extract")
    finalization_function: str = Field(default="finalize")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if not 0 <= v <= 10:
            raise ValueError("max_retries must be between 0 and 10")
        return v

    @field_validator("base_delay")
    @classmethod
    def validate_base_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("base_delay must not be negative")
        return v

    @field_validator("retry_policy")
    @classmethod
    def validate_retry_policy(cls, v: str) -> str:
        valid_policies = ["transient", "all"]
        if v not in valid_policies:
            raise ValueError(f"retry_policy must be one of {valid_policies}")
        return v


# =============================================================================
# Weighting Settings
# =============================================================================


class WeightingSettings(BaseSettings):
    """Decay factors for the multi-period blend."""

    model_config = SettingsConfigDict(env_prefix="WEIGHTING_")

    alpha_growth: float = Field(default=0.3)
    alpha_cyclical: float = Field(default=0.6)
    alpha_stable: float = Field(default=0.8)
    default_pattern: str = Field(default="stable")

    @field_validator("alpha_growth", "alpha_cyclical", "alpha_stable")
    @classmethod
    def validate_alpha(cls, v: float) -> float:
        """Validate alpha is in (0, 1]."""
        if not 0 < v <= 1:
            raise ValueError("alpha must be greater than 0 and at most 1")
        return v

    @field_validator("default_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        valid_patterns = [p.value for p in BusinessPattern]
        if v not in valid_patterns:
            raise ValueError(f"default_pattern must be one of {valid_patterns}")
        return v

    def alphas(self) -> Dict[BusinessPattern, float]:
        return {
            BusinessPattern.GROWTH: self.alpha_growth,
            BusinessPattern.CYCLICAL: self.alpha_cyclical,
            BusinessPattern.STABLE: self.alpha_stable,
        }


# =============================================================================
# Aggregation Settings
# =============================================================================


class AggregationSettings(BaseSettings):
    """Per-period method aggregation configuration."""

    model_config = SettingsConfigDict(env_prefix="AGGREGATION_")

    display_method_cap: int = Field(default=5)

    @field_validator("display_method_cap")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v


# =============================================================================
# Database Settings
# =============================================================================


class DatabaseSettings(BaseSettings):
    """Progress store configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(default="sqlite:///data/clarivalue_progress.db")
    echo: bool = Field(default=False)


# =============================================================================
# Main Configuration
# =============================================================================


class ClariValueConfig(BaseSettings):
    """
    Master configuration - single source of truth.

    Example:
        >>> config = ClariValueConfig.from_yaml("config.yaml")
        >>> print(config.remote.base_url)
    """

    model_config = SettingsConfigDict(extra="allow")

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    weighting: WeightingSettings = Field(default_factory=WeightingSettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @classmethod
    def from_yaml(cls, config_path: str | Path = "config.yaml") -> "ClariValueConfig":
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to config.yaml file (default: "config.yaml")

        Returns:
            Validated ClariValueConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
            ValueError: If required environment variable is missing
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            yaml_content = f.read()

        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default_value}
        def env_var_replacer(match):
            var_spec = match.group(1)
            if ":-" in var_spec:
                var_name, default = var_spec.split(":-", 1)
                return os.getenv(var_name, default)
            value = os.getenv(var_spec)
            if value is None:
                raise ValueError(f"Environment variable {var_spec} not set and no default provided")
            return value

        yaml_content = re.sub(r"\$\{([^}]+)\}", env_var_replacer, yaml_content)

        config_dict = yaml.safe_load(yaml_content) or {}

        return cls(**config_dict)


def get_settings(config_path: str | Path = "config.yaml") -> ClariValueConfig:
    """
    Load settings from YAML, falling back to defaults when the file is missing.

    Example:
        >>> settings = get_settings()
        >>> print(settings.weighting.alpha_growth)
    """
    try:
        return ClariValueConfig.from_yaml(config_path)
    except FileNotFoundError:
        logger.debug(f"{config_path} not found, using default settings")
        return ClariValueConfig()


__all__ = [
    "AggregationSettings",
    "ApplicationSettings",
    "ClariValueConfig",
    "DatabaseSettings",
    "RemoteSettings",
    "WeightingSettings",
    "get_settings",
]
