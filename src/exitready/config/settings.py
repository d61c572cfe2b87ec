"""
Pydantic settings models for ExitReady configuration.

This module provides type-safe configuration with validation using Pydantic.
Configuration is loaded from config.yaml with environment variable substitution;
every field can also be overridden through an ``EXITREADY_<SECTION>_<FIELD>``
environment variable.

The calculation services never read these settings themselves. Callers turn
them into explicit arguments (weights, ``DiscountPolicy``, chunk sizes).
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exitready.domain.exceptions import InvalidWeightsError
from exitready.domain.services.scoring.category_weights import (
    DEAL_READINESS_WEIGHTS,
    DEFAULT_CATEGORY_WEIGHTS,
    CategoryWeights,
    validate_category_weights,
)
from exitready.domain.services.valuation.cost_of_capital import (
    DEFAULT_BETA,
    DEFAULT_GROWTH_RATES,
    DEFAULT_TAX_RATE,
    DEFAULT_TERMINAL_GROWTH_RATE,
    EQUITY_RISK_PREMIUM,
    RISK_FREE_RATE,
)
from exitready.domain.services.valuation.valuation_formula import (
    ALPHA,
    DEFAULT_CORE_WEIGHT,
    DEFAULT_MAX_DISCOUNT,
    DiscountPolicy,
)

# =============================================================================
# Application Settings
# =============================================================================


class ApplicationSettings(BaseSettings):
    """Application metadata and environment configuration."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_APP_")

    name: str = Field(default="ExitReady")
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
# Scoring Settings
# =============================================================================


def _weights_as_strings(weights: CategoryWeights) -> Dict[str, float]:
    return {category.value: weight for category, weight in weights.items()}


class ScoringSettings(BaseSettings):
    """Category weight sets for the BRI and Deal Readiness composites."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_SCORING_")

    default_weights: Dict[str, float] = Field(
        default_factory=lambda: _weights_as_strings(DEFAULT_CATEGORY_WEIGHTS)
    )
    deal_readiness_weights: Dict[str, float] = Field(
        default_factory=lambda: _weights_as_strings(DEAL_READINESS_WEIGHTS)
    )

    @field_validator("default_weights", "deal_readiness_weights")
    @classmethod
    def validate_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Validate the weight set sums to 100% over known categories."""
        try:
            validate_category_weights(v)
        except InvalidWeightsError as e:
            raise ValueError(str(e)) from e
        return v

    def bri_weights(self) -> CategoryWeights:
        return validate_category_weights(self.default_weights)

    def deal_readiness_category_weights(self) -> CategoryWeights:
        return validate_category_weights(self.deal_readiness_weights)


# =============================================================================
# Valuation Settings
# =============================================================================


class ValuationSettings(BaseSettings):
    """Multiple-discount curve for the valuation formula."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_VALUATION_")

    alpha: float = Field(default=ALPHA)
    core_weight: float = Field(default=DEFAULT_CORE_WEIGHT)
    max_discount: float = Field(default=DEFAULT_MAX_DISCOUNT)

    @field_validator("alpha")
    @classmethod
    def validate_alpha(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("alpha must be positive")
        return v

    @field_validator("core_weight")
    @classmethod
    def validate_core_weight(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("core_weight must be between 0 and 1")
        return v

    @field_validator("max_discount")
    @classmethod
    def validate_max_discount(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError("max_discount must be in [0, 1)")
        return v

    def to_discount_policy(self) -> DiscountPolicy:
        return DiscountPolicy(alpha=self.alpha, core_weight=self.core_weight, max_discount=self.max_discount)


# =============================================================================
# DCF Settings
# =============================================================================


class DCFSettings(BaseSettings):
    """DCF rate defaults and sensitivity grid spacing."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_DCF_")

    risk_free_rate: float = Field(default=RISK_FREE_RATE)
    equity_risk_premium: float = Field(default=EQUITY_RISK_PREMIUM)
    beta: float = Field(default=DEFAULT_BETA)
    tax_rate: float = Field(default=DEFAULT_TAX_RATE)
    terminal_growth_rate: float = Field(default=DEFAULT_TERMINAL_GROWTH_RATE)
    growth_rates: List[float] = Field(default_factory=lambda: list(DEFAULT_GROWTH_RATES))
    use_mid_year_convention: bool = Field(default=False)
    wacc_step: float = Field(default=0.01)
    growth_step: float = Field(default=0.005)
    multiple_step: float = Field(default=1.0)
    sensitivity_steps: int = Field(default=2)

    @field_validator("growth_rates")
    @classmethod
    def validate_growth_rates(cls, v: List[float]) -> List[float]:
        """Validate there is one growth rate per projection year."""
        if len(v) != 5:
            raise ValueError("growth_rates must have exactly 5 entries")
        return v

    @field_validator("wacc_step", "growth_step", "multiple_step")
    @classmethod
    def validate_step(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("sensitivity steps must be positive")
        return v

    @field_validator("sensitivity_steps")
    @classmethod
    def validate_sensitivity_steps(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("sensitivity_steps must be between 1 and 5")
        return v


# =============================================================================
# Signal Settings
# =============================================================================


class SignalSettings(BaseSettings):
    """Signal display and value-at-risk parameters."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_SIGNALS_")

    max_display: int = Field(default=3)
    value_normalizer: float = Field(default=10_000.0)
    trend_threshold: float = Field(default=0.05)
    lookback_days: int = Field(default=30)
    top_threats: int = Field(default=3)

    @field_validator("max_display", "lookback_days", "top_threats")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("value_normalizer")
    @classmethod
    def validate_normalizer(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("value_normalizer must be positive")
        return v

    @field_validator("trend_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError("trend_threshold must be in [0, 1)")
        return v


# =============================================================================
# Simulation Settings
# =============================================================================


class SimulationSettings(BaseSettings):
    """Retirement Monte Carlo defaults."""

    model_config = SettingsConfigDict(env_prefix="EXITREADY_SIMULATION_")

    iterations: int = Field(default=5000)
    chunk_size: int = Field(default=500)
    return_std_dev: float = Field(default=0.15)
    inflation_std_dev: float = Field(default=0.01)
    histogram_bins: int = Field(default=25)
    seed: Optional[int] = Field(default=None)

    @field_validator("iterations", "chunk_size", "histogram_bins")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("return_std_dev", "inflation_std_dev")
    @classmethod
    def validate_std_dev(cls, v: float) -> float:
        if v < 0:
            raise ValueError("standard deviation cannot be negative")
        return v


# =============================================================================
# Main Configuration
# =============================================================================


class ExitReadyConfig(BaseSettings):
    """
    Master configuration - single source of truth.

    Example:
        >>> config = ExitReadyConfig.from_yaml("config.yaml")
        >>> policy = config.valuation.to_discount_policy()
    """

    model_config = SettingsConfigDict(extra="allow")

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    valuation: ValuationSettings = Field(default_factory=ValuationSettings)
    dcf: DCFSettings = Field(default_factory=DCFSettings)
    signals: SignalSettings = Field(default_factory=SignalSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

    @classmethod
    def from_yaml(cls, config_path: str | Path = "config.yaml") -> "ExitReadyConfig":
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to config.yaml file (default: "config.yaml")

        Returns:
            Validated ExitReadyConfig instance

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


def get_settings(config_path: str | Path = "config.yaml") -> ExitReadyConfig:
    """
    Load settings from ``config_path``.

    Example:
        >>> settings = get_settings()
        >>> print(settings.simulation.iterations)
    """
    return ExitReadyConfig.from_yaml(config_path)


# Module-level instance; defaults when config.yaml is absent or unusable
try:
    settings = get_settings()
except (FileNotFoundError, ValueError):
    settings = ExitReadyConfig()


__all__ = [
    "ApplicationSettings",
    "DCFSettings",
    "ExitReadyConfig",
    "ScoringSettings",
    "SignalSettings",
    "SimulationSettings",
    "ValuationSettings",
    "get_settings",
    "settings",
]
