"""SNMP transport: get-next and table walks against named MIB objects."""

import ipaddress
from abc import ABC, abstractmethod
from typing import Any

import structlog
from pyasn1.type import univ
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    Udp6TransportTarget,
    UdpTransportTarget,
    UsmUserData,
    next_cmd,
    usmAesCfb128Protocol,
    usmHMACSHAAuthProtocol,
    walk_cmd,
)

from pybgpdisco.config import settings
from pybgpdisco.models.device import Device
from pybgpdisco.snmp.mibs import resolve_object, resolve_table

logger = structlog.get_logger(__name__)

# (index suffix, value) in walk order
WalkRow = tuple[tuple[int, ...], Any]
# index suffix -> {column name: value}
IndexedRows = dict[tuple[int, ...], dict[str, Any]]


class SnmpError(Exception):
    """Exception raised when an SNMP request fails."""

    pass


class Transport(ABC):
    """
    Request/response access to a device's management data.

    All calls honour the device's currently bound VRF context. Failures
    raise :class:`SnmpError`; a missing object is not a failure.
    """

    @abstractmethod
    async def get_next(self, device: Device, name: str, mib: str) -> Any:
        """
        Get-next on an object.

        Returns:
            The value of the first instance under the object, or None if
            the agent has none
        """

    @abstractmethod
    async def walk(self, device: Device, name: str, mib: str) -> list[WalkRow]:
        """
        Walk one columnar object.

        Returns:
            Ordered (index suffix, value) rows
        """

    @abstractmethod
    async def walk_indexed(self, device: Device, table: str, mib: str) -> IndexedRows:
        """
        Walk a whole table.

        Returns:
            Map of composite index to {column name: value}
        """


def convert_value(value: Any) -> Any:
    """
    Convert a pysnmp value to a plain Python value.

    Integers (Integer32, Counter, Gauge, TimeTicks) become ``int``,
    OCTET STRING and IpAddress become ``bytes``, and the exception values
    noSuchObject, noSuchInstance and endOfMibView become ``None``.
    """
    if isinstance(value, univ.Null):
        return None
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, univ.OctetString):
        return bytes(value.asOctets())
    if isinstance(value, univ.ObjectIdentifier):
        return tuple(value)
    return value.prettyPrint()


class SnmpTransport(Transport):
    """
    Transport backed by the pysnmp asyncio high-level API.

    One instance serves one device; the SNMP engine is reused across all
    requests so v3 engine discovery happens once.
    """

    def __init__(
        self,
        timeout: float | None = None,
        retries: int | None = None,
        engine: SnmpEngine | None = None,
    ) -> None:
        """
        Initialize SNMP transport.

        Args:
            timeout: Per-request timeout in seconds (default: settings)
            retries: Retries per request (default: settings)
            engine: Shared SNMP engine (created if not provided)
        """
        self.timeout = timeout if timeout is not None else settings.snmp_timeout
        self.retries = retries if retries is not None else settings.snmp_retries
        self.engine = engine or SnmpEngine()

    def _auth(self, device: Device) -> CommunityData | UsmUserData:
        version = (device.snmp_version or settings.snmp_version).lower()
        if version == "v3":
            return UsmUserData(
                device.snmp_v3_user or "",
                authKey=device.snmp_v3_auth_key,
                privKey=device.snmp_v3_priv_key,
                authProtocol=usmHMACSHAAuthProtocol if device.snmp_v3_auth_key else None,
                privProtocol=usmAesCfb128Protocol if device.snmp_v3_priv_key else None,
            )

        community = device.snmp_community or settings.snmp_community
        # v2c agents select the VRF context through community@context
        if device.context_name:
            community = f"{community}@{device.context_name}"
        return CommunityData(community, mpModel=1)

    def _context(self, device: Device) -> ContextData:
        version = (device.snmp_version or settings.snmp_version).lower()
        if version == "v3" and device.context_name:
            return ContextData(contextName=device.context_name)
        return ContextData()

    async def _target(self, device: Device) -> UdpTransportTarget | Udp6TransportTarget:
        address = (device.hostname, device.snmp_port or settings.snmp_port)
        try:
            is_ipv6 = ipaddress.ip_address(device.hostname).version == 6
        except ValueError:
            is_ipv6 = False

        timeout = device.snmp_timeout if device.snmp_timeout is not None else self.timeout
        retries = device.snmp_retries if device.snmp_retries is not None else self.retries

        target_class = Udp6TransportTarget if is_ipv6 else UdpTransportTarget
        try:
            return await target_class.create(address, timeout=timeout, retries=retries)
        except Exception as e:
            raise SnmpError(f"Cannot resolve {device.hostname}: {e}") from e

    @staticmethod
    def _check(
        device: Device, error_indication: Any, error_status: Any, error_index: Any
    ) -> None:
        if error_indication:
            raise SnmpError(f"{device.hostname}: {error_indication}")
        if error_status:
            raise SnmpError(
                f"{device.hostname}: {error_status.prettyPrint()} at index {error_index}"
            )

    async def get_next(self, device: Device, name: str, mib: str) -> Any:
        """Get-next on an object, None when the agent has no instance of it."""
        obj = resolve_object(name, mib)
        target = await self._target(device)

        error_indication, error_status, error_index, var_binds = await next_cmd(
            self.engine,
            self._auth(device),
            target,
            self._context(device),
            ObjectType(ObjectIdentity(obj.oid)),
        )
        self._check(device, error_indication, error_status, error_index)

        for oid, value in var_binds:
            oid_tuple = tuple(oid)
            if oid_tuple[: len(obj.oid)] != obj.oid:
                return None
            return convert_value(value)
        return None

    async def _walk_oid(self, device: Device, base: tuple[int, ...]) -> list[WalkRow]:
        target = await self._target(device)
        rows: list[WalkRow] = []

        async for error_indication, error_status, error_index, var_binds in walk_cmd(
            self.engine,
            self._auth(device),
            target,
            self._context(device),
            ObjectType(ObjectIdentity(base)),
            lexicographicMode=False,
        ):
            self._check(device, error_indication, error_status, error_index)
            for oid, value in var_binds:
                oid_tuple = tuple(oid)
                if oid_tuple[: len(base)] != base:
                    continue
                converted = convert_value(value)
                if converted is None:
                    continue
                rows.append((oid_tuple[len(base) :], converted))

        logger.debug(
            "snmp_walk_complete",
            device=device.hostname,
            context=device.context_name,
            oid=".".join(map(str, base)),
            rows=len(rows),
        )
        return rows

    async def walk(self, device: Device, name: str, mib: str) -> list[WalkRow]:
        """Walk one columnar object."""
        obj = resolve_object(name, mib)
        return await self._walk_oid(device, obj.oid)

    async def walk_indexed(self, device: Device, table: str, mib: str) -> IndexedRows:
        """Walk a table entry and group the columns by row index."""
        mib_table = resolve_table(table, mib)
        result: IndexedRows = {}

        for suffix, value in await self._walk_oid(device, mib_table.entry_oid):
            if len(suffix) < 2:
                continue
            column, index = suffix[0], suffix[1:]
            result.setdefault(index, {})[mib_table.column_name(column)] = value

        return result
