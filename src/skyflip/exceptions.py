"""Exception classes for the flip pipeline.

All pipeline errors inherit from ``ApplicationError`` so callers can contain
them at the right level:

1. ``DecodeError`` / ``PageFetchError`` are per-listing / per-page and never
   abort a polling cycle.
2. ``FeedError`` aborts the current cycle; the loop retries after a back-off.
3. ``ConfigurationError`` is fatal at startup.

Keyword arguments passed to any of them are stored as attributes for debugging:
``err = DecodeError("bad payload", payload_length=12)``.
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Application error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class ConfigurationError(ApplicationError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Configuration is invalid or missing"
        super().__init__(message, **kwargs)

    @classmethod
    def missing_value(cls, param_name: str, context: str = "") -> "ConfigurationError":
        """Create error for missing value."""
        msg = f"{param_name} is missing or empty"
        if context:
            msg += f": {context}"
        return cls(msg, param_name=param_name)

    @classmethod
    def invalid_value(cls, param_name: str, value: Any, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg, param_name=param_name, value=value)


class FeedError(ApplicationError):
    """Listing feed metadata could not be retrieved."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Listing feed metadata could not be retrieved"
        super().__init__(message, **kwargs)


class PageFetchError(ApplicationError):
    """A single listing page could not be retrieved."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "A single listing page could not be retrieved"
        super().__init__(message, **kwargs)


class DecodeError(ApplicationError):
    """Item payload could not be interpreted."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Item payload could not be interpreted"
        super().__init__(message, **kwargs)


class TagParseError(DecodeError):
    """Binary tag stream is malformed."""


class TagShapeError(DecodeError):
    """Binary tag tree does not have the expected shape."""


__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "DecodeError",
    "FeedError",
    "PageFetchError",
    "TagParseError",
    "TagShapeError",
]
