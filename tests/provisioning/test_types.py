"""Unit tests for provisioning data types and provider errors."""

import dataclasses

import pytest

from stkdock.errors import ProviderError
from stkdock.provisioning.types import BillingType, CreateRequest, Node, NodeNetworks


def test_node_ipv4_is_first_address():
    node = Node(id="n1", networks=NodeNetworks(v4=["198.51.100.1", "198.51.100.2"]), user="ubuntu")
    assert node.ipv4 == "198.51.100.1"
    assert node.address == "ubuntu@198.51.100.1"


def test_node_address_no_user():
    node = Node(id="n1", networks=NodeNetworks(v4=["198.51.100.1"]))
    assert node.address == "198.51.100.1"


def test_node_without_ipv4_raises():
    node = Node(id="n1", networks=NodeNetworks(v6=["2001:db8::1"]))
    with pytest.raises(ProviderError, match="no IPv4"):
        node.ipv4


def test_node_is_immutable():
    node = Node(id="n1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.id = "n2"


def test_create_request_defaults():
    request = CreateRequest(name="stk", region="BHS5", sku="B2-15", ssh_key="ssh-ed25519 AAAA")
    assert request.billing is BillingType.HOURLY
    assert request.image == "Ubuntu 22.04"


def test_provider_error_names_request_without_key():
    request = CreateRequest(name="stk", region="BHS5", sku="B2-15", ssh_key="ssh-ed25519 SECRETKEY")
    message = str(ProviderError("quota exceeded", request))
    assert "quota exceeded" in message
    assert "name=stk region=BHS5 sku=B2-15" in message
    assert "SECRETKEY" not in message
