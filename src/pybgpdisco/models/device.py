"""Pydantic models for managed devices and their VRF contexts."""

from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import BaseModel, Field, PrivateAttr


class VrfContext(BaseModel):
    """
    VRF context configured on a device.

    A ``None`` name is the default/global routing context.
    """

    name: str | None = Field(None, description="SNMP context name of the VRF")


class Device(BaseModel):
    """
    Managed device as seen by BGP discovery.

    Holds the inventory attributes used for vendor selection, the
    persisted local AS (updated by discovery), SNMP access parameters and
    the configured VRF contexts. The active SNMP context is bound with
    :meth:`bind_context` for the duration of one context pipeline.
    """

    device_id: int = Field(..., description="Inventory identifier")
    hostname: str = Field(..., description="Management hostname or IP address")
    os: str = Field(..., description="Operating system, e.g. 'junos', 'eos'")
    os_group: str | None = Field(
        None, description="Operating system group, e.g. 'cisco', 'arista'"
    )
    bgp_local_as: int | None = Field(None, description="Persisted BGP local AS")

    snmp_version: str | None = Field(None, description="SNMP version override")
    snmp_community: str | None = Field(None, description="SNMP community override")
    snmp_port: int | None = Field(None, ge=1, le=65535, description="SNMP port override")
    snmp_timeout: float | None = Field(None, gt=0.0, description="SNMP timeout override")
    snmp_retries: int | None = Field(None, ge=0, description="SNMP retries override")
    snmp_v3_user: str | None = Field(None, description="SNMPv3 user name")
    snmp_v3_auth_key: str | None = Field(None, description="SNMPv3 auth passphrase")
    snmp_v3_priv_key: str | None = Field(None, description="SNMPv3 privacy passphrase")

    vrf_contexts: list[VrfContext] = Field(
        default_factory=list, description="Configured VRF contexts"
    )

    _context_name: str | None = PrivateAttr(default=None)
    _context_bound: bool = PrivateAttr(default=False)

    @property
    def context_name(self) -> str | None:
        """SNMP context currently bound, None for the default context."""
        return self._context_name

    def contexts(self) -> list[VrfContext]:
        """Contexts to discover: the configured ones or the default context."""
        if self.vrf_contexts:
            return list(self.vrf_contexts)
        return [VrfContext(name=None)]

    @contextmanager
    def bind_context(self, context_name: str | None) -> Iterator["Device"]:
        """
        Bind the device to one VRF context for the duration of the block.

        Args:
            context_name: Context to bind (None for the default context)

        Raises:
            RuntimeError: If another context is already bound
        """
        if self._context_bound:
            raise RuntimeError(
                f"Device {self.hostname} already bound to context "
                f"{self._context_name!r}"
            )

        self._context_name = context_name
        self._context_bound = True
        try:
            yield self
        finally:
            self._context_name = None
            self._context_bound = False
