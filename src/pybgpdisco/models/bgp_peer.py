"""Pydantic models for discovered and persisted BGP peers."""

from datetime import datetime

from pydantic import BaseModel, Field


class DiscoveredPeer(BaseModel):
    """
    BGP peer as observed on the device in the current pass.

    Produced by the peer builder from any vendor schema.
    """

    ip: str = Field(..., description="Remote peer IP address (canonical form)")
    remote_as: int = Field(..., ge=0, description="Remote AS number")
    astext: str = Field("", description="Resolved AS name")


class BgpPeer(BaseModel):
    """BGP peer row persisted for a device and VRF context."""

    peer_id: int = Field(..., description="Database identifier")
    device_id: int = Field(..., description="Owning device")
    context_name: str | None = Field(None, description="VRF context")
    peer_ip: str = Field(..., description="Remote peer IP address")
    remote_as: int = Field(..., description="Remote AS number")
    astext: str = Field("", description="Resolved AS name")
    first_seen: datetime | None = Field(None, description="First discovery time")
    last_seen: datetime | None = Field(None, description="Last discovery time")


class AddressFamily(BaseModel):
    """Address family membership row persisted for a BGP peer."""

    device_id: int = Field(..., description="Owning device")
    context_name: str | None = Field(None, description="VRF context")
    peer_ip: str = Field(..., description="Remote peer IP address")
    afi: str = Field(..., description="Address family, e.g. 'ipv4'")
    safi: str = Field(..., description="Subsequent address family, e.g. 'unicast'")

    @property
    def key(self) -> tuple[str, str, str]:
        """Membership identity: (peer ip, afi, safi)."""
        return (self.peer_ip, self.afi, self.safi)
