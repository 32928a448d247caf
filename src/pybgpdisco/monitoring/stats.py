"""Statistics tracking for BGP discovery runs."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ContextStats:
    """Outcome of discovering one VRF context of one device."""

    device: str
    context_name: str | None = None
    local_as: int | None = None
    schema: str | None = None
    generic_fallback: bool = False
    peers_added: int = 0
    peers_updated: int = 0
    peers_removed: int = 0
    families_added: int = 0
    families_removed: int = 0
    started: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished: datetime | None = None

    def record_peer(self, created: bool) -> None:
        """
        Count an upserted peer.

        Args:
            created: True if the peer was inserted, False if updated
        """
        if created:
            self.peers_added += 1
        else:
            self.peers_updated += 1

    def record_peer_removed(self) -> None:
        """Count a deleted peer."""
        self.peers_removed += 1

    def record_family(self, created: bool) -> None:
        """Count an upserted address family (only inserts are counted)."""
        if created:
            self.families_added += 1

    def record_family_removed(self) -> None:
        """Count a deleted address family."""
        self.families_removed += 1

    def finish(self) -> None:
        """Mark the context as complete."""
        self.finished = datetime.now(UTC)

    @property
    def duration_ms(self) -> int:
        """Elapsed time in milliseconds (up to now if not finished)."""
        end = self.finished or datetime.now(UTC)
        return int((end - self.started).total_seconds() * 1000)

    def log_summary(self) -> None:
        """Log the context outcome as one structured event."""
        logger.info(
            "bgp_discovery_context_complete",
            device=self.device,
            context=self.context_name,
            local_as=self.local_as,
            schema=self.schema,
            generic_fallback=self.generic_fallback,
            peers_added=self.peers_added,
            peers_updated=self.peers_updated,
            peers_removed=self.peers_removed,
            families_added=self.families_added,
            families_removed=self.families_removed,
            duration_ms=self.duration_ms,
        )


class DiscoveryStatistics:
    """Collect context outcomes and device failures for one run."""

    def __init__(self) -> None:
        """Initialize statistics collector."""
        self._contexts: list[ContextStats] = []
        self._failed_devices: set[str] = set()

    def start_context(self, device: str, context_name: str | None) -> ContextStats:
        """
        Create and register the stats of a context about to be discovered.

        Args:
            device: Device hostname
            context_name: VRF context (None for default)

        Returns:
            ContextStats to fill in
        """
        stats = ContextStats(device=device, context_name=context_name)
        self._contexts.append(stats)
        return stats

    def record_failure(self, device: str) -> None:
        """Count a device whose discovery was aborted."""
        self._failed_devices.add(device)

    @property
    def contexts(self) -> list[ContextStats]:
        """All registered context stats."""
        return list(self._contexts)

    def totals(self) -> dict[str, int]:
        """Aggregate counters over all contexts."""
        return {
            "devices": len({c.device for c in self._contexts} | self._failed_devices),
            "devices_failed": len(self._failed_devices),
            "contexts": len(self._contexts),
            "peers_added": sum(c.peers_added for c in self._contexts),
            "peers_updated": sum(c.peers_updated for c in self._contexts),
            "peers_removed": sum(c.peers_removed for c in self._contexts),
            "families_added": sum(c.families_added for c in self._contexts),
            "families_removed": sum(c.families_removed for c in self._contexts),
        }

    def log_summary(self) -> None:
        """Log run totals."""
        logger.info("bgp_discovery_run_complete", **self.totals())
