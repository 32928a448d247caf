"""Address decoding for SNMP table indexes and OCTET STRING values."""

import ipaddress
import re
from collections.abc import Sequence

# InetAddressType values (RFC 4001)
INET_TYPE_IPV4 = 1
INET_TYPE_IPV6 = 2
INET_TYPE_IPV4Z = 3
INET_TYPE_IPV6Z = 4

_HEX_SEPARATORS = re.compile(r"[\s:.\-]")


class InetAddressError(ValueError):
    """Exception raised when an address cannot be decoded."""

    pass


def read_octets(index: Sequence[int], offset: int, length: int) -> bytes:
    """
    Read ``length`` sub-identifiers as octets from an OID index.

    Args:
        index: OID index suffix
        offset: Position of the first octet
        length: Number of octets to read

    Returns:
        Octets as bytes

    Raises:
        InetAddressError: If the index is too short or a value exceeds 255
    """
    if len(index) < offset + length:
        raise InetAddressError(
            f"Not enough sub-identifiers to read {length} octets at offset {offset}: "
            f"need {offset + length}, got {len(index)}"
        )
    octets = index[offset : offset + length]
    if any(not 0 <= o <= 255 for o in octets):
        raise InetAddressError(f"Sub-identifier out of octet range in {tuple(octets)}")
    return bytes(octets)


def ip_from_octets(data: bytes) -> str:
    """
    Convert raw address octets to a canonical IP string.

    Args:
        data: 4 (IPv4) or 16 (IPv6) octets

    Returns:
        IP address as string (e.g., "192.0.2.1", "2001:db8::1")

    Raises:
        InetAddressError: If the length is neither 4 nor 16
    """
    if len(data) == 4:
        return str(ipaddress.IPv4Address(data))
    if len(data) == 16:
        return str(ipaddress.IPv6Address(data))
    raise InetAddressError(f"Unsupported address length {len(data)}: {data.hex()}")


def ip_from_hex(value: bytes | str) -> str:
    """
    Parse an address given as raw octets or as a hex rendering of them.

    Accepts ``b"\\x0a\\x00\\x00\\x01"``, ``"0A 00 00 01"``, ``"0a:00:00:01"``
    and ``"0x0a000001"``.

    Args:
        value: Octets or hex string

    Returns:
        Canonical IP string

    Raises:
        InetAddressError: If the value is not a 4 or 16 octet address
    """
    if isinstance(value, bytes):
        return ip_from_octets(value)

    text = value.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    text = _HEX_SEPARATORS.sub("", text)
    try:
        data = bytes.fromhex(text)
    except ValueError as e:
        raise InetAddressError(f"Invalid hex address {value!r}") from e
    return ip_from_octets(data)


def read_ipv4_index(index: Sequence[int], offset: int = 0) -> tuple[str, int]:
    """
    Read an IpAddress index component (four sub-identifiers).

    Args:
        index: OID index suffix
        offset: Position of the first octet

    Returns:
        Tuple of (IP string, offset after the address)

    Raises:
        InetAddressError: If the index is too short
    """
    return ip_from_octets(read_octets(index, offset, 4)), offset + 4


def read_inet_address(index: Sequence[int], offset: int = 0) -> tuple[str, int]:
    """
    Read an InetAddressType + InetAddress index pair.

    The address is length-prefixed: ``type.len.o1...oN``. Zoned types
    carry a 4 octet zone index after the address, which is dropped.

    Args:
        index: OID index suffix
        offset: Position of the InetAddressType sub-identifier

    Returns:
        Tuple of (IP string, offset after the address)

    Raises:
        InetAddressError: If the type is unsupported or the index is malformed
    """
    if len(index) < offset + 2:
        raise InetAddressError(
            f"Not enough sub-identifiers for InetAddress at offset {offset}"
        )

    addr_type = index[offset]
    length = index[offset + 1]
    data = read_octets(index, offset + 2, length)
    next_offset = offset + 2 + length

    if addr_type == INET_TYPE_IPV4 and length == 4:
        return ip_from_octets(data), next_offset
    if addr_type == INET_TYPE_IPV6 and length == 16:
        return ip_from_octets(data), next_offset
    if addr_type == INET_TYPE_IPV4Z and length == 8:
        return ip_from_octets(data[:4]), next_offset
    if addr_type == INET_TYPE_IPV6Z and length == 20:
        return ip_from_octets(data[:16]), next_offset

    raise InetAddressError(
        f"Unsupported InetAddress type {addr_type} with length {length}"
    )


def is_unspecified(ip: str) -> bool:
    """Check for 0.0.0.0 / :: placeholders some agents report."""
    return ipaddress.ip_address(ip).is_unspecified
