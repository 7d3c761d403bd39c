"""Authenticated SSH connection and interactive shell session to a node."""

import asyncio
import contextlib
import logging
import os
from enum import Enum

import asyncssh
from asyncssh.constants import OPEN_REQUEST_SESSION_FAILED

from stkdock.errors import AuthenticationError, DialError, SessionOpenError, ShellStartError

logger = logging.getLogger(__name__)

SSH_PORT = 22


class HostKeyPolicy(Enum):
    """How the node's host key is checked."""

    ACCEPT_ANY = "accept-any"  # trust on first use, nothing verified
    KNOWN_HOSTS = "known-hosts"


def _known_hosts_arg(policy, known_hosts):
    if policy is HostKeyPolicy.ACCEPT_ANY:
        return None
    # () lets asyncssh fall back to ~/.ssh/known_hosts
    return os.path.expanduser(known_hosts) if known_hosts else ()


async def dial(
    host,
    user,
    key,
    port=SSH_PORT,
    host_key_policy=HostKeyPolicy.ACCEPT_ANY,
    known_hosts=None,
    connect_timeout=10,
):
    """Connect to *host* and authenticate as *user* with the private *key*.

    Raises:
        AuthenticationError: the key was rejected, or the host key is untrusted.
        DialError: the TCP connection or SSH handshake failed.
    """
    logger.debug(f"Dialing {user}@{host}:{port}")
    try:
        return await asyncssh.connect(
            host,
            port=port,
            username=user,
            client_keys=[key],
            known_hosts=_known_hosts_arg(host_key_policy, known_hosts),
            connect_timeout=connect_timeout,
        )
    except asyncssh.PermissionDenied as e:
        raise AuthenticationError(f"Authentication as {user}@{host} rejected: {e.reason}") from e
    except asyncssh.HostKeyNotVerifiable as e:
        raise AuthenticationError(f"Host key for {host} not trusted: {e.reason}") from e
    except (OSError, TimeoutError, asyncssh.Error) as e:
        raise DialError(f"Failed to dial {host}:{port}: {e}") from e


class RemoteSession:
    """One interactive shell on an open connection.

    Owns the connection: closing the session closes both, exactly once.
    """

    def __init__(self, conn, process):
        self._conn = conn
        self._process = process
        self._closed = False

    @property
    def stdin(self):
        return self._process.stdin

    @property
    def stdout(self):
        return self._process.stdout

    @property
    def stderr(self):
        return self._process.stderr

    @property
    def closed(self) -> bool:
        return self._closed

    async def wait(self):
        """Wait for the remote shell to exit and return the completed process."""
        return await self._process.wait(check=False)

    async def close(self):
        """Close the shell and its connection. Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._process.close()
        self._conn.close()
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._conn.wait_closed(), timeout=5.0)
        logger.debug("SSH session closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_):
        await self.close()


async def open_shell(conn):
    """Open one session on *conn* and start an interactive shell on it.

    The shell reads command lines from stdin, so no command is passed.
    stdin/stdout/stderr are binary streams. On failure the connection is
    closed before raising.

    Raises:
        ShellStartError: the node refused the shell request.
        SessionOpenError: the session channel could not be opened.
    """
    try:
        process = await conn.create_process(encoding=None)
    except asyncssh.ChannelOpenError as e:
        conn.close()
        if e.code == OPEN_REQUEST_SESSION_FAILED:
            raise ShellStartError(f"Failed to start SSH shell: {e.reason}") from e
        raise SessionOpenError(f"Failed to create SSH session: {e.reason}") from e
    except (OSError, asyncssh.Error) as e:
        conn.close()
        raise SessionOpenError(f"Failed to create SSH session: {e}") from e
    return RemoteSession(conn, process)
