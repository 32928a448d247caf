"""Sentry integration helper functions.

Sentry is configured with LoggingIntegration, which captures records from
Python's logging module (which structlog writes to):

1. structlog logs at INFO+ are attached to Sentry events as breadcrumbs
2. structlog logs at ERROR+ are sent to Sentry as issues

``capture_discovery_error`` adds device/context tags and the exception
itself for failures that abort discovery of one device.

Usage:
    from pybgpdisco.monitoring.sentry_helper import capture_discovery_error

    try:
        await discover_device(device, transport, store, resolver)
    except asyncpg.PostgresError as e:
        capture_discovery_error(device.hostname, None, e)
"""

from typing import Any

import structlog

from pybgpdisco.config import settings

logger = structlog.get_logger(__name__)

_sentry_enabled = False
_sentry_sdk = None


def init_sentry() -> bool:
    """
    Initialize Sentry SDK if configured.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    global _sentry_enabled, _sentry_sdk

    if not settings.sentry_dsn:
        logger.debug("sentry_disabled")
        return False

    try:
        import logging as stdlib_logging

        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        _sentry_sdk = sentry_sdk

        sentry_logging = LoggingIntegration(
            level=stdlib_logging.INFO,
            event_level=stdlib_logging.ERROR,
        )

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.sentry_environment,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            max_breadcrumbs=100,
            integrations=[sentry_logging],
        )

        _sentry_enabled = True
        logger.info("sentry_initialized", environment=settings.sentry_environment)
        return True

    except ImportError:
        logger.warning("sentry_sdk_not_installed", sentry_dsn=settings.sentry_dsn)
        return False


def is_sentry_enabled() -> bool:
    """Check if Sentry is enabled."""
    return _sentry_enabled


def get_sentry_sdk() -> Any:
    """
    Get Sentry SDK instance for direct use (spans, transactions, etc.).

    Returns:
        Sentry SDK instance or None if Sentry not enabled
    """
    return _sentry_sdk if _sentry_enabled else None


def capture_discovery_error(
    device: str,
    context_name: str | None,
    exception: Exception,
) -> None:
    """
    Log a failed device discovery and send it to Sentry with tags.

    Args:
        device: Device hostname
        context_name: VRF context being processed (None for default)
        exception: The exception that aborted discovery
    """
    logger.error(
        "bgp_discovery_failed",
        device=device,
        context=context_name,
        error=str(exception),
        error_type=type(exception).__name__,
    )

    if _sentry_sdk:
        with _sentry_sdk.push_scope() as scope:
            scope.set_tag("device", device)
            scope.set_tag("context", context_name or "default")
            _sentry_sdk.capture_exception(exception)
