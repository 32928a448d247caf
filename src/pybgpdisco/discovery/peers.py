"""Normalization of walked peer rows into uniform peer records."""

from collections.abc import Callable, Iterable

import structlog

from pybgpdisco.discovery.astext import AsTextResolver
from pybgpdisco.models.bgp_peer import DiscoveredPeer
from pybgpdisco.snmp.transport import WalkRow
from pybgpdisco.utils.inet import InetAddressError, is_unspecified

logger = structlog.get_logger(__name__)

IndexDecoder = Callable[[tuple[int, ...]], str]


def as_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def build_peers(rows: Iterable[WalkRow], decode_index: IndexDecoder) -> list[DiscoveredPeer]:
    """
    Build peer records from remote-AS walk rows.

    Rows with an undecodable index, a non-numeric AS or an unspecified
    address are skipped. The first row wins for a repeated address.

    Args:
        rows: (index, remote AS) rows from any vendor peer table
        decode_index: Schema-specific decoder from row index to peer IP

    Returns:
        Peers in walk order, unique by IP
    """
    peers: dict[str, DiscoveredPeer] = {}

    for index, value in rows:
        try:
            ip = decode_index(index)
        except InetAddressError as e:
            logger.warning("bgp_peer_index_unparsable", index=index, error=str(e))
            continue

        remote_as = as_number(value)
        if remote_as is None:
            logger.warning("bgp_peer_remote_as_invalid", peer=ip, value=repr(value))
            continue

        if is_unspecified(ip):
            logger.debug("bgp_peer_unspecified_address_skipped", remote_as=remote_as)
            continue

        if ip in peers:
            logger.debug("bgp_peer_duplicate_skipped", peer=ip)
            continue

        peers[ip] = DiscoveredPeer(ip=ip, remote_as=remote_as)

    return list(peers.values())


async def resolve_astext(
    peers: list[DiscoveredPeer], resolver: AsTextResolver
) -> list[DiscoveredPeer]:
    """Attach the resolved AS name to each peer."""
    return [
        peer.model_copy(update={"astext": await resolver.resolve(peer.remote_as)})
        for peer in peers
    ]
