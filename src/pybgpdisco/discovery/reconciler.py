"""Converge persisted BGP peers and address families to the observed state."""

import structlog

from pybgpdisco.database.operations import BgpStore
from pybgpdisco.discovery.strategies import AddressFamilyMap
from pybgpdisco.models.bgp_peer import DiscoveredPeer
from pybgpdisco.monitoring.stats import ContextStats

logger = structlog.get_logger(__name__)


async def upsert_observed(
    store: BgpStore,
    device_id: int,
    context_name: str | None,
    peers: list[DiscoveredPeer],
    families: AddressFamilyMap | None,
    stats: ContextStats,
) -> None:
    """
    Insert or update every observed peer, then its address families.

    Families reported for an address that is not an observed peer are
    ignored.
    """
    for peer in peers:
        created = await store.upsert_peer(device_id, context_name, peer)
        stats.record_peer(created)
        if created:
            logger.info("bgp_peer_added", peer=peer.ip, remote_as=peer.remote_as)
        else:
            logger.debug("bgp_peer_updated", peer=peer.ip, remote_as=peer.remote_as)

    if families is None:
        return

    for peer in peers:
        for afi, safi in sorted(families.get(peer.ip, ())):
            created = await store.upsert_address_family(
                device_id, context_name, peer.ip, afi, safi
            )
            stats.record_family(created)
            if created:
                logger.info("bgp_address_family_added", peer=peer.ip, afi=afi, safi=safi)


async def converge_address_families(
    store: BgpStore,
    device_id: int,
    context_name: str | None,
    families: AddressFamilyMap | None,
    stats: ContextStats,
) -> None:
    """
    Delete persisted memberships that were not observed.

    Only peers present in ``families`` are converged; memberships of
    peers whose families could not be observed are left alone.
    """
    if families is None:
        return

    for row in await store.fetch_address_families(device_id, context_name):
        observed = families.get(row.peer_ip)
        if observed is None or (row.afi, row.safi) in observed:
            continue

        await store.delete_address_family(
            device_id, context_name, row.peer_ip, row.afi, row.safi
        )
        stats.record_family_removed()
        logger.info(
            "bgp_address_family_removed", peer=row.peer_ip, afi=row.afi, safi=row.safi
        )


async def converge_peers(
    store: BgpStore,
    device_id: int,
    context_name: str | None,
    peers: list[DiscoveredPeer],
    stats: ContextStats,
) -> None:
    """Delete persisted peers (with their families) that were not observed."""
    observed_ips = {peer.ip for peer in peers}

    for row in await store.fetch_peers(device_id, context_name):
        if row.peer_ip in observed_ips:
            continue

        await store.delete_peer(row.peer_id)
        stats.record_peer_removed()
        logger.info("bgp_peer_removed", peer=row.peer_ip, remote_as=row.remote_as)


async def reconcile(
    store: BgpStore,
    device_id: int,
    context_name: str | None,
    peers: list[DiscoveredPeer],
    families: AddressFamilyMap | None,
    stats: ContextStats,
) -> None:
    """
    Make the persisted state of one device context equal the observation.

    Args:
        store: Persistent store
        device_id: Device ID
        context_name: VRF context (None for default)
        peers: Peers observed in this pass
        families: Observed families per peer IP, None if unobservable
        stats: Counters to update

    Raises:
        asyncpg.PostgresError: On database errors
    """
    await upsert_observed(store, device_id, context_name, peers, families, stats)
    await converge_address_families(store, device_id, context_name, families, stats)
    await converge_peers(store, device_id, context_name, peers, stats)
