from __future__ import annotations

"""Exception types for configuration handling."""

from ..exceptions import ConfigurationError

__all__ = ["ConfigurationError"]
