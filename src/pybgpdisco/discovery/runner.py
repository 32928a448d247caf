"""BGP peer discovery for one device across its VRF contexts.

Per device, the local AS is read once. Then per context:

    peer table schema -> peers -> address families -> reconcile

Contexts run strictly one after another. Everything a context produces
(peer table, peers, address families, Juniper index maps) is local to
:func:`discover_context`, so nothing carries over to the next context.
"""

import structlog

from pybgpdisco.config import settings
from pybgpdisco.database.operations import BgpStore
from pybgpdisco.discovery.astext import AsTextResolver
from pybgpdisco.discovery.peers import as_number, resolve_astext
from pybgpdisco.discovery.reconciler import reconcile
from pybgpdisco.discovery.strategies import (
    AddressFamilyMap,
    GenericStrategy,
    PeerTable,
    SchemaStrategy,
    select_strategy,
)
from pybgpdisco.models.bgp_peer import DiscoveredPeer
from pybgpdisco.models.device import Device
from pybgpdisco.monitoring.stats import ContextStats, DiscoveryStatistics
from pybgpdisco.snmp.mibs import BGP4_MIB
from pybgpdisco.snmp.transport import Transport

logger = structlog.get_logger(__name__)


async def probe_local_as(transport: Transport, store: BgpStore, device: Device) -> int | None:
    """
    Read bgpLocalAs and persist changes to the device's local AS.

    Read in the default context. A non-numeric answer means BGP is not
    running on the device; a previously persisted local AS is then
    cleared.

    Returns:
        The local AS, or None when BGP is not running

    Raises:
        SnmpError: If the device cannot be queried
    """
    local_as = as_number(await transport.get_next(device, "bgpLocalAs", BGP4_MIB))

    if local_as is None:
        logger.info("bgp_not_running", device=device.hostname)
        if device.bgp_local_as:
            await store.update_device_local_as(device.device_id, None)
            device.bgp_local_as = None
            logger.info("bgp_local_as_removed", device=device.hostname)
        return None

    if local_as != device.bgp_local_as:
        await store.update_device_local_as(device.device_id, local_as)
        logger.info(
            "bgp_local_as_updated",
            device=device.hostname,
            previous=device.bgp_local_as,
            local_as=local_as,
        )
        device.bgp_local_as = local_as

    return local_as


async def probe_peer_table(transport: Transport, device: Device) -> tuple[PeerTable, SchemaStrategy]:
    """
    Select the device's peer table schema.

    The vendor schema matching the device is walked first; if it yields
    no rows the standard BGP4-MIB table is walked instead.

    Returns:
        Tuple of (peer table, vendor strategy used for address families)
    """
    strategy = select_strategy(device)
    table = await strategy.probe(transport, device)

    if not table.rows and not isinstance(strategy, GenericStrategy):
        logger.info(
            "bgp_schema_fallback",
            device=device.hostname,
            schema=strategy.name,
            fallback=GenericStrategy.name,
        )
        table = await GenericStrategy().probe(transport, device)
        table.generic_fallback = True

    return table, strategy


async def discover_context(
    device: Device,
    transport: Transport,
    store: BgpStore,
    resolver: AsTextResolver,
    stats: ContextStats,
    local_as: int | None,
) -> ContextStats:
    """
    Discover and reconcile the currently bound context of a device.

    Args:
        local_as: The device's local AS; None removes the context's peers

    Raises:
        asyncpg.PostgresError: On database errors
    """
    context_name = device.context_name
    peers: list[DiscoveredPeer] = []
    families: AddressFamilyMap | None = None

    stats.local_as = local_as

    if local_as is not None:
        table, strategy = await probe_peer_table(transport, device)
        stats.schema = table.schema.name
        stats.generic_fallback = table.generic_fallback

        peers = await resolve_astext(table.build_peers(), resolver)
        families = await strategy.collect_address_families(transport, device, peers, table)
        logger.debug(
            "bgp_peers_observed",
            schema=table.schema.name,
            richer=table.richer,
            peers=len(peers),
            families_observable=families is not None,
        )

    await reconcile(store, device.device_id, context_name, peers, families, stats)
    stats.finish()
    stats.log_summary()
    return stats


async def discover_device(
    device: Device,
    transport: Transport,
    store: BgpStore,
    resolver: AsTextResolver,
    statistics: DiscoveryStatistics | None = None,
) -> list[ContextStats]:
    """
    Discover BGP peers of a device in each of its VRF contexts.

    Args:
        device: Device to discover
        transport: Device transport
        store: Persistent store
        resolver: AS name resolver
        statistics: Run statistics to register contexts with

    Returns:
        Stats of each discovered context

    Raises:
        SnmpError: If the device cannot be queried
        asyncpg.PostgresError: On database errors
    """
    if not settings.enable_bgp:
        logger.debug("bgp_discovery_disabled", device=device.hostname)
        return []

    statistics = statistics or DiscoveryStatistics()
    results: list[ContextStats] = []

    local_as = await probe_local_as(transport, store, device)

    for vrf in device.contexts():
        stats = statistics.start_context(device.hostname, vrf.name)
        with device.bind_context(vrf.name):
            with structlog.contextvars.bound_contextvars(
                device=device.hostname, context=vrf.name
            ):
                results.append(
                    await discover_context(
                        device, transport, store, resolver, stats, local_as
                    )
                )

    return results
