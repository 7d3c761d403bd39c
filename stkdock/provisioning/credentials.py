"""SSH key pair loading: public half for the provider, private half for auth."""

import logging
import os
from dataclasses import dataclass

import asyncssh

from stkdock.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """An SSH key pair identified by the private key's path."""

    path: str
    public_key: str  # authorized-key text, surrounding whitespace stripped
    private_key: asyncssh.SSHKey


def read_public_key(path):
    """Read ``<path>.pub`` and strip surrounding whitespace and newlines."""
    pub_path = f"{path}.pub"
    try:
        with open(pub_path) as f:
            return f.read().strip("\r\n\t ")
    except OSError as e:
        raise ConfigError(f"Error reading SSH public key '{pub_path}': {e}") from e


def read_private_key(path):
    """Parse the private key at *path* into a signing identity."""
    try:
        return asyncssh.read_private_key(path)
    except OSError as e:
        raise ConfigError(f"Failed to read private key '{path}': {e}") from e
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError) as e:
        raise ConfigError(f"Failed to parse private key '{path}': {e}") from e


def load_credentials(path):
    """Load both halves of the key pair at *path* and check they match.

    Raises:
        ConfigError: a file is missing or unreadable, the key material is
            malformed, or the public key does not belong to the private key.
    """
    path = os.path.expanduser(path)
    public_key = read_public_key(path)
    private_key = read_private_key(path)

    try:
        asyncssh.import_public_key(public_key)
    except asyncssh.KeyImportError as e:
        raise ConfigError(f"Failed to parse public key '{path}.pub': {e}") from e

    derived = private_key.export_public_key().decode().split()[:2]
    if public_key.split()[:2] != derived:
        raise ConfigError(f"Public key '{path}.pub' does not match private key '{path}'")

    logger.debug(f"Loaded SSH key pair {path} ({derived[0]})")
    return Credentials(path=path, public_key=public_key, private_key=private_key)
