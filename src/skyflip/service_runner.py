from __future__ import annotations

"""Utilities for running long-lived async services with consistent shutdown handling."""

import asyncio
import logging
import signal
from typing import Any, Callable, Coroutine, Optional

from .logging_config import setup_logging

ServiceFactory = Callable[[], Coroutine[Any, Any, None]]


def run_async_service(
    factory: ServiceFactory,
    *,
    service_name: str,
    logger_name: Optional[str] = None,
    configure_logging: bool = True,
    shutdown_message: Optional[str] = None,
    ignore_sighup: bool = False,
) -> None:
    """Run an async service with consistent Ctrl+C handling.

    Args:
        factory: Callable returning the coroutine to execute.
        service_name: Identifier used for logging configuration.
        logger_name: Optional logger name override.
        configure_logging: Whether to configure logging via ``setup_logging``.
        shutdown_message: Optional custom message when interrupted.
        ignore_sighup: Keep running after the launching terminal closes.
    """

    if configure_logging:
        setup_logging(service_name)

    logger = logging.getLogger(logger_name or f"skyflip.{service_name}")

    if ignore_sighup:
        try:
            signal.signal(signal.SIGHUP, signal.SIG_IGN)
            logger.debug("Ignoring SIGHUP for %s", service_name)
        except AttributeError:  # policy_guard: allow-silent-handler
            # SIGHUP is not defined on all platforms (e.g., Windows).
            logger.debug("SIGHUP not available; cannot ignore for %s", service_name)
        except ValueError:  # policy_guard: allow-silent-handler
            # Raised when signals are configured outside the main thread.
            logger.warning("Failed to ignore SIGHUP for %s", service_name)

    try:
        asyncio.run(factory())
    except KeyboardInterrupt:  # policy_guard: allow-silent-handler
        if shutdown_message:
            logger.info(shutdown_message)
        else:
            logger.info("%s service interrupted by user", service_name)


__all__ = ["ServiceFactory", "run_async_service"]
