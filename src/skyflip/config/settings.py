from __future__ import annotations

"""Settings snapshot consumed by the flip service.

Values come from a JSON settings file (``config/skyflip.json`` by default) and
can be overridden per key through ``SKYFLIP_*`` environment variables. The
resulting :class:`FlipperSettings` is immutable for the process lifetime.
"""

import logging
import math
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from ..constants.items import DEFAULT_ENCHANT_MIN_LEVELS, DEFAULT_PRICE_OVERRIDES
from ..constants.network import (
    DEFAULT_BROADCAST_HOST,
    DEFAULT_BROADCAST_PORT,
    DEFAULT_FEED_URL,
    DEFAULT_KEY_CHECK_URL,
)
from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_seconds, env_str, load_json_object

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SETTINGS_PATH = Path("config") / "skyflip.json"
SETTINGS_TEMPLATE_PATH = Path(__file__).with_name("default_settings.json")

DEFAULT_REINDEX_INTERVAL = 6
DEFAULT_POLL_INTERVAL_SECONDS = 60.0
DEFAULT_FAILURE_BACKOFF_SECONDS = 30.0
DEFAULT_MAX_CONCURRENT_PAGES = 10
DEFAULT_REQUEST_TIMEOUT_SECONDS = 15.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ApiSettings:
    key: str
    feed_url: str = DEFAULT_FEED_URL
    key_check_url: str = DEFAULT_KEY_CHECK_URL
    page_fetch_delay_ms: int = 0
    max_concurrent_pages: int = DEFAULT_MAX_CONCURRENT_PAGES
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS

    @property
    def page_fetch_delay_seconds(self) -> float:
        return self.page_fetch_delay_ms / 1000.0


@dataclass(frozen=True)
class ValuationOptions:
    """Thresholds and toggles applied by the valuation engine and flip decision."""

    min_profit: float = 0.0
    max_price_cap: float = math.inf
    add_recombobulator: bool = True
    enchant_min_levels: Mapping[str, int] = field(default_factory=lambda: DEFAULT_ENCHANT_MIN_LEVELS)
    price_overrides: Mapping[str, float] = field(default_factory=lambda: DEFAULT_PRICE_OVERRIDES)


@dataclass(frozen=True)
class ServiceSettings:
    reindex_interval: int = DEFAULT_REINDEX_INTERVAL
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    failure_backoff_seconds: float = DEFAULT_FAILURE_BACKOFF_SECONDS


@dataclass(frozen=True)
class NotificationSettings:
    webhook_url: str = ""
    broadcast_enabled: bool = True
    broadcast_host: str = DEFAULT_BROADCAST_HOST
    broadcast_port: int = DEFAULT_BROADCAST_PORT


@dataclass(frozen=True)
class FlipperSettings:
    api: ApiSettings
    options: ValuationOptions = field(default_factory=ValuationOptions)
    service: ServiceSettings = field(default_factory=ServiceSettings)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)


def _section(payload: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = payload.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Configuration section '{name}' must be an object, got {type(section).__name__}")
    return section


def _typed(section: Mapping[str, Any], key: str, default: T, cast: Callable[[Any], T], path: str) -> T:
    if key not in section or section[key] is None:
        return default
    value = section[key]
    if isinstance(value, bool) and cast not in (bool, _strict_bool):
        raise ConfigurationError.invalid_value(f"{path}.{key}", value, "Expected a number")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError.invalid_value(f"{path}.{key}", value) from exc


def _strict_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError("not a boolean")
    return value


def _numeric_table(section: Mapping[str, Any], key: str, default: Mapping[str, T], cast: Callable[[Any], T], path: str) -> Mapping[str, T]:
    raw = section.get(key)
    if raw is None:
        return default
    if not isinstance(raw, dict):
        raise ConfigurationError.invalid_value(f"{path}.{key}", raw, "Expected an object")
    table: Dict[str, T] = {}
    for name, value in raw.items():
        if isinstance(value, bool):
            raise ConfigurationError.invalid_value(f"{path}.{key}.{name}", value, "Expected a number")
        try:
            table[str(name)] = cast(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError.invalid_value(f"{path}.{key}.{name}", value) from exc
    return MappingProxyType(table)


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigurationError.invalid_value(name, value, "Must be positive")


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigurationError.invalid_value(name, value, "Must be non-negative")


def _build_api(section: Mapping[str, Any]) -> ApiSettings:
    key = env_str("SKYFLIP_API_KEY", or_value=_typed(section, "key", "", str, "api").strip())
    if not key:
        raise ConfigurationError.missing_value("api.key", "set it in the settings file or SKYFLIP_API_KEY")

    api = ApiSettings(
        key=key,
        feed_url=env_str("SKYFLIP_FEED_URL", or_value=_typed(section, "feed_url", DEFAULT_FEED_URL, str, "api")),
        key_check_url=env_str("SKYFLIP_KEY_CHECK_URL", or_value=_typed(section, "key_check_url", DEFAULT_KEY_CHECK_URL, str, "api")),
        page_fetch_delay_ms=env_int("SKYFLIP_PAGE_FETCH_DELAY_MS", or_value=_typed(section, "page_fetch_delay_ms", 0, int, "api")),
        max_concurrent_pages=env_int(
            "SKYFLIP_MAX_CONCURRENT_PAGES",
            or_value=_typed(section, "max_concurrent_pages", DEFAULT_MAX_CONCURRENT_PAGES, int, "api"),
        ),
        request_timeout_seconds=env_seconds(
            "SKYFLIP_REQUEST_TIMEOUT_SECONDS",
            or_value=_typed(section, "request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS, float, "api"),
        ),
        connect_timeout_seconds=env_seconds(
            "SKYFLIP_CONNECT_TIMEOUT_SECONDS",
            or_value=_typed(section, "connect_timeout_seconds", DEFAULT_CONNECT_TIMEOUT_SECONDS, float, "api"),
        ),
    )
    _require_non_negative("api.page_fetch_delay_ms", api.page_fetch_delay_ms)
    _require_positive("api.max_concurrent_pages", api.max_concurrent_pages)
    _require_positive("api.request_timeout_seconds", api.request_timeout_seconds)
    _require_positive("api.connect_timeout_seconds", api.connect_timeout_seconds)
    return api


def _build_options(section: Mapping[str, Any]) -> ValuationOptions:
    options = ValuationOptions(
        min_profit=env_float("SKYFLIP_MIN_PROFIT", or_value=_typed(section, "min_profit", 0.0, float, "options")),
        max_price_cap=env_float("SKYFLIP_MAX_PRICE_CAP", or_value=_typed(section, "max_price_cap", math.inf, float, "options")),
        add_recombobulator=env_bool(
            "SKYFLIP_ADD_RECOMBOBULATOR",
            or_value=_typed(section, "add_recombobulator", True, _strict_bool, "options"),
        ),
        enchant_min_levels=_numeric_table(section, "enchant_min_levels", DEFAULT_ENCHANT_MIN_LEVELS, int, "options"),
        price_overrides=_numeric_table(section, "price_overrides", DEFAULT_PRICE_OVERRIDES, float, "options"),
    )
    _require_non_negative("options.min_profit", options.min_profit)
    _require_positive("options.max_price_cap", options.max_price_cap)
    return options


def _build_service(section: Mapping[str, Any]) -> ServiceSettings:
    service = ServiceSettings(
        reindex_interval=env_int(
            "SKYFLIP_REINDEX_INTERVAL",
            or_value=_typed(section, "reindex_interval", DEFAULT_REINDEX_INTERVAL, int, "service"),
        ),
        poll_interval_seconds=env_seconds(
            "SKYFLIP_POLL_INTERVAL_SECONDS",
            or_value=_typed(section, "poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS, float, "service"),
        ),
        failure_backoff_seconds=env_seconds(
            "SKYFLIP_FAILURE_BACKOFF_SECONDS",
            or_value=_typed(section, "failure_backoff_seconds", DEFAULT_FAILURE_BACKOFF_SECONDS, float, "service"),
        ),
    )
    _require_positive("service.reindex_interval", service.reindex_interval)
    return service


def _build_notifications(section: Mapping[str, Any]) -> NotificationSettings:
    notifications = NotificationSettings(
        webhook_url=env_str("SKYFLIP_WEBHOOK_URL", or_value=_typed(section, "webhook_url", "", str, "notifications")),
        broadcast_enabled=env_bool(
            "SKYFLIP_BROADCAST_ENABLED",
            or_value=_typed(section, "broadcast_enabled", True, _strict_bool, "notifications"),
        ),
        broadcast_host=env_str(
            "SKYFLIP_BROADCAST_HOST",
            or_value=_typed(section, "broadcast_host", DEFAULT_BROADCAST_HOST, str, "notifications"),
        ),
        broadcast_port=env_int(
            "SKYFLIP_BROADCAST_PORT",
            or_value=_typed(section, "broadcast_port", DEFAULT_BROADCAST_PORT, int, "notifications"),
        ),
    )
    if not 0 < notifications.broadcast_port < 65536:
        raise ConfigurationError.invalid_value("notifications.broadcast_port", notifications.broadcast_port)
    return notifications


def settings_from_mapping(payload: Mapping[str, Any]) -> FlipperSettings:
    """Build settings from an already-parsed settings document."""

    return FlipperSettings(
        api=_build_api(_section(payload, "api")),
        options=_build_options(_section(payload, "options")),
        service=_build_service(_section(payload, "service")),
        notifications=_build_notifications(_section(payload, "notifications")),
    )


def _install_template(config_path: Path) -> None:
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(SETTINGS_TEMPLATE_PATH, config_path)
    except OSError as exc:
        raise ConfigurationError(f"Failed to create default settings file {config_path}") from exc


def load_settings(config_path: Optional[Path] = None) -> FlipperSettings:
    """Load the settings snapshot.

    When the settings file does not exist the bundled template is copied in its
    place and ``ConfigurationError`` is raised so the user can fill in the API key.
    """

    resolved = Path(env_str("SKYFLIP_CONFIG_PATH", or_value=str(config_path or DEFAULT_SETTINGS_PATH))).expanduser()
    if not resolved.exists():
        _install_template(resolved)
        raise ConfigurationError(f"Missing settings file {resolved}; a default was created. Fill in your API key.")

    settings = settings_from_mapping(load_json_object(resolved))
    logger.info(
        "Loaded settings from %s (min_profit=%s, max_price_cap=%s, reindex_interval=%s)",
        resolved,
        settings.options.min_profit,
        settings.options.max_price_cap,
        settings.service.reindex_interval,
    )
    return settings


__all__ = [
    "ApiSettings",
    "DEFAULT_SETTINGS_PATH",
    "FlipperSettings",
    "NotificationSettings",
    "SETTINGS_TEMPLATE_PATH",
    "ServiceSettings",
    "ValuationOptions",
    "load_settings",
    "settings_from_mapping",
]
