"""Application entry point."""

import asyncio
import sys

import asyncpg  # type: ignore[import-untyped]
import structlog

from pybgpdisco.config import settings
from pybgpdisco.database.connection import DatabasePool
from pybgpdisco.database.migrations import apply_migrations
from pybgpdisco.database.operations import BgpStore
from pybgpdisco.discovery.astext import AsTextResolver
from pybgpdisco.discovery.runner import discover_device
from pybgpdisco.models.device import Device
from pybgpdisco.monitoring.logger import configure_logging
from pybgpdisco.monitoring.sentry_helper import capture_discovery_error
from pybgpdisco.monitoring.stats import DiscoveryStatistics
from pybgpdisco.snmp.transport import SnmpTransport

logger: structlog.BoundLogger | None = None


def _failed_context(statistics: DiscoveryStatistics, hostname: str) -> str | None:
    started = [c for c in statistics.contexts if c.device == hostname]
    return started[-1].context_name if started else None


async def discover_one(
    device: Device,
    store: BgpStore,
    resolver: AsTextResolver,
    statistics: DiscoveryStatistics,
    semaphore: asyncio.Semaphore,
) -> bool:
    """
    Discover one device, recording its failure instead of raising.

    Returns:
        True if every context of the device was discovered
    """
    async with semaphore:
        try:
            await discover_device(device, SnmpTransport(), store, resolver, statistics)
            return True
        except Exception as e:
            capture_discovery_error(
                device.hostname, _failed_context(statistics, device.hostname), e
            )
            statistics.record_failure(device.hostname)
            return False


async def run_discovery(pool: asyncpg.Pool) -> DiscoveryStatistics:
    """
    Run one discovery pass over all selected devices.

    Devices are processed concurrently up to ``discovery_concurrency``;
    the contexts of one device always run sequentially.
    """
    store = BgpStore(pool)
    resolver = AsTextResolver()
    statistics = DiscoveryStatistics()
    semaphore = asyncio.Semaphore(settings.discovery_concurrency)

    devices = await store.fetch_devices(settings.device_ids)
    if logger:
        logger.info("bgp_discovery_starting", devices=len(devices))

    await asyncio.gather(
        *(discover_one(d, store, resolver, statistics, semaphore) for d in devices)
    )

    statistics.log_summary()
    return statistics


async def run(database: DatabasePool) -> DiscoveryStatistics:
    """Connect, migrate and run discovery, always closing the pool."""
    await database.connect_from_settings(settings)
    try:
        await apply_migrations(database.get_pool())
        return await run_discovery(database.get_pool())
    finally:
        await database.close()


def main() -> None:
    """Main application entry point."""
    global logger

    try:
        # Configure logging first
        logger = configure_logging()

        logger.info(
            "pybgpdisco_starting",
            version="0.1.0",
            python_version=sys.version.split()[0],
            enable_bgp=settings.enable_bgp,
            concurrency=settings.discovery_concurrency,
            log_level=settings.log_level,
        )

        statistics = asyncio.run(run(DatabasePool()))
        logger.info("pybgpdisco_stopped", **statistics.totals())

    except KeyboardInterrupt:
        if logger:
            logger.info("keyboard_interrupt")
        sys.exit(130)
    except Exception as e:
        if logger:
            logger.critical("startup_error", error=str(e), exc_info=True)
        else:
            print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
