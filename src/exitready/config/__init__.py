"""
Configuration Layer

Application configuration with environment variable support.
"""

from exitready.config.settings import (
    ApplicationSettings,
    DCFSettings,
    ExitReadyConfig,
    ScoringSettings,
    SignalSettings,
    SimulationSettings,
    ValuationSettings,
    get_settings,
    settings,
)

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
