"""Configuration loading: environment helpers and the settings snapshot."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_seconds, env_str, load_json_object
from .settings import (
    ApiSettings,
    FlipperSettings,
    NotificationSettings,
    ServiceSettings,
    ValuationOptions,
    load_settings,
    settings_from_mapping,
)

__all__ = [
    "ApiSettings",
    "ConfigurationError",
    "FlipperSettings",
    "NotificationSettings",
    "ServiceSettings",
    "ValuationOptions",
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "load_json_object",
    "load_settings",
    "settings_from_mapping",
]
