"""Node provisioning: compute drivers, readiness, SSH session, relay, sequencer."""

from stkdock.provisioning.credentials import Credentials, load_credentials
from stkdock.provisioning.driver import ComputeDriver
from stkdock.provisioning.ovh import OVHDriver
from stkdock.provisioning.readiness import connect_with_retry, wait_for_node
from stkdock.provisioning.relay import relay_stream, start_relay
from stkdock.provisioning.sequencer import format_command, send_commands, wait_for_exit
from stkdock.provisioning.session import HostKeyPolicy, RemoteSession, dial, open_shell
from stkdock.provisioning.types import BillingType, CreateRequest, Node, NodeNetworks

__all__ = [
    "BillingType",
    "ComputeDriver",
    "CreateRequest",
    "Credentials",
    "HostKeyPolicy",
    "Node",
    "NodeNetworks",
    "OVHDriver",
    "RemoteSession",
    "connect_with_retry",
    "dial",
    "format_command",
    "load_credentials",
    "open_shell",
    "relay_stream",
    "send_commands",
    "start_relay",
    "wait_for_exit",
    "wait_for_node",
]
