"""Configuration loading for the onboarding wizard."""

from src.config.settings import (
    FieldRule,
    StorageSettings,
    WizardSettings,
    default_config_path,
    load_settings,
)

__all__ = [
    "FieldRule",
    "StorageSettings",
    "WizardSettings",
    "default_config_path",
    "load_settings",
]
