"""Pytest configuration and fixtures."""

import pytest
from fakes import FakeResolver, InMemoryStore

from pybgpdisco.models.device import Device


@pytest.fixture
def cisco_device() -> Device:
    """Return a Cisco IOS device without VRF contexts."""
    return Device(device_id=1, hostname="192.0.2.1", os="ios", os_group="cisco")


@pytest.fixture
def arista_device() -> Device:
    """Return an Arista EOS device without VRF contexts."""
    return Device(device_id=2, hostname="192.0.2.2", os="eos", os_group="arista")


@pytest.fixture
def juniper_device() -> Device:
    """Return a Junos device without VRF contexts."""
    return Device(device_id=3, hostname="192.0.2.3", os="junos", os_group="juniper")


@pytest.fixture
def generic_device() -> Device:
    """Return a device of an OS without a vendor BGP MIB."""
    return Device(device_id=4, hostname="192.0.2.4", os="linux")


@pytest.fixture
def store() -> InMemoryStore:
    """Return an empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def resolver() -> FakeResolver:
    """Return a resolver that knows a few public ASNs."""
    return FakeResolver({13335: "CLOUDFLARENET, US", 15169: "GOOGLE, US"})
