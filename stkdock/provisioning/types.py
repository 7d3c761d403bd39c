"""Shared data types for compute drivers."""

from dataclasses import dataclass, field
from enum import Enum

from stkdock.errors import ProviderError


class BillingType(Enum):
    """How the provider bills the node."""

    HOURLY = "hourly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class CreateRequest:
    """Desired node shape for a single create call."""

    name: str
    region: str
    sku: str
    ssh_key: str  # public key text, already trimmed
    billing: BillingType = BillingType.HOURLY
    user: str = ""
    image: str = "Ubuntu 22.04"


@dataclass(frozen=True)
class NodeNetworks:
    """Addresses reported by the provider."""

    v4: list[str] = field(default_factory=list)
    v6: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Node:
    """A created compute node."""

    id: str
    networks: NodeNetworks = field(default_factory=NodeNetworks)
    user: str = ""

    @property
    def ipv4(self) -> str:
        """First reported IPv4 address, used as the connection target."""
        if not self.networks.v4:
            raise ProviderError(f"Node {self.id} reported no IPv4 address")
        return self.networks.v4[0]

    @property
    def address(self) -> str:
        """SSH address string (user@host)."""
        return f"{self.user}@{self.ipv4}" if self.user else self.ipv4
