"""Provisioning configuration loading and validation."""

import logging
import os
from dataclasses import dataclass, field

import yaml

from stkdock.errors import ConfigError
from stkdock.provisioning.ovh import DEFAULT_ENDPOINT, resolve_api_url
from stkdock.provisioning.session import SSH_PORT, HostKeyPolicy
from stkdock.provisioning.types import BillingType
from stkdock.redact import register_secret

logger = logging.getLogger(__name__)

# Config field -> env var used when the field is absent
_OVH_ENV_FALLBACKS = {
    "app_key": "OVH_APPLICATION_KEY",
    "app_secret": "OVH_APPLICATION_SECRET",
    "consumer_key": "OVH_CONSUMER_KEY",
    "project_id": "OVH_PROJECT_ID",
}
_STK_ENV_FALLBACKS = {
    "stk_username": "STK_USERNAME",
    "stk_password": "STK_PASSWORD",
}


@dataclass
class OVHConfig:
    """OVH API credentials and project."""

    app_key: str
    app_secret: str
    consumer_key: str
    project_id: str
    endpoint: str = DEFAULT_ENDPOINT


@dataclass
class NodeConfig:
    """Shape of the node to create."""

    name: str = "stk-memes"
    region: str = "BHS5"
    sku: str = "B2-15"
    image: str = "Ubuntu 22.04"
    billing: BillingType = BillingType.HOURLY


@dataclass
class ReadinessConfig:
    """Wait between node creation and a usable SSH connection (seconds)."""

    delay: float = 60
    timeout: float = 300
    interval: float = 5
    backoff: float = 2.0
    max_interval: float = 30
    connect_timeout: float = 10


@dataclass
class SSHConfig:
    """SSH connection options."""

    port: int = SSH_PORT
    host_key_policy: HostKeyPolicy = HostKeyPolicy.ACCEPT_ANY
    known_hosts: str | None = None


@dataclass
class ProvisionConfig:
    """Complete, validated configuration for one run."""

    identity_file: str
    ovh: OVHConfig
    stk_username: str
    stk_password: str
    node: NodeConfig = field(default_factory=NodeConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    ssh: SSHConfig = field(default_factory=SSHConfig)
    commands_file: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> "ProvisionConfig":
        """Build a config from a raw dict, falling back to env vars for secrets."""
        identity_file = d.get("identity_file")
        if not identity_file:
            raise ConfigError("Missing 'identity_file' in config")

        ovh_dict = d.get("ovh_config") or {}
        ovh_values = {}
        for key, env_var in _OVH_ENV_FALLBACKS.items():
            value = ovh_dict.get(key) or os.environ.get(env_var)
            if not value:
                raise ConfigError(f"Missing '{key}' in 'ovh_config' section (or {env_var} env var)")
            ovh_values[key] = str(value)
        endpoint = ovh_dict.get("endpoint", DEFAULT_ENDPOINT)
        try:
            resolve_api_url(endpoint)
        except ValueError as e:
            raise ConfigError(str(e)) from None
        ovh = OVHConfig(**ovh_values, endpoint=endpoint)

        stk_values = {}
        for key, env_var in _STK_ENV_FALLBACKS.items():
            value = d.get(key) or os.environ.get(env_var)
            if not value:
                raise ConfigError(f"Missing '{key}' in config (or {env_var} env var)")
            stk_values[key] = str(value)

        commands_file = d.get("commands_file")
        return cls(
            identity_file=_expand_path(identity_file),
            ovh=ovh,
            **stk_values,
            node=_node_from_dict(d.get("node") or {}),
            readiness=_readiness_from_dict(d.get("readiness") or {}),
            ssh=_ssh_from_dict(d.get("ssh") or {}),
            commands_file=_expand_path(commands_file) if commands_file else None,
        )

    def secrets(self) -> list[str]:
        """Values that must never appear in logs."""
        return [self.ovh.app_secret, self.ovh.consumer_key, self.stk_password]


def _node_from_dict(d):
    defaults = NodeConfig()
    billing = d.get("billing", defaults.billing.value)
    try:
        billing = BillingType(str(billing).lower())
    except ValueError:
        choices = ", ".join(b.value for b in BillingType)
        raise ConfigError(f"Invalid 'node.billing' value '{billing}' (expected one of: {choices})") from None
    return NodeConfig(
        name=d.get("name", defaults.name),
        region=d.get("region", defaults.region),
        sku=d.get("sku", defaults.sku),
        image=d.get("image", defaults.image),
        billing=billing,
    )


def _readiness_from_dict(d):
    defaults = ReadinessConfig()
    values = {}
    for name in ("delay", "timeout", "interval", "backoff", "max_interval", "connect_timeout"):
        value = d.get(name, getattr(defaults, name))
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid 'readiness.{name}' value '{value}' (expected a number)") from None
        if value < 0:
            raise ConfigError(f"Invalid 'readiness.{name}' value {value} (must not be negative)")
        values[name] = value
    if values["backoff"] < 1:
        raise ConfigError(f"Invalid 'readiness.backoff' value {values['backoff']} (must be >= 1)")
    return ReadinessConfig(**values)


def _ssh_from_dict(d):
    policy = d.get("host_key_policy", HostKeyPolicy.ACCEPT_ANY.value)
    try:
        policy = HostKeyPolicy(policy)
    except ValueError:
        choices = ", ".join(p.value for p in HostKeyPolicy)
        raise ConfigError(f"Invalid 'ssh.host_key_policy' value '{policy}' (expected one of: {choices})") from None
    try:
        port = int(d.get("port", SSH_PORT))
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid 'ssh.port' value '{d.get('port')}' (expected an integer)") from None
    known_hosts = d.get("known_hosts")
    return SSHConfig(
        port=port,
        host_key_policy=policy,
        known_hosts=_expand_path(known_hosts) if known_hosts else None,
    )


def load_config(config_path: str) -> ProvisionConfig:
    """Load and validate configuration from a YAML (or JSON) file.

    Registers the config's secrets for log redaction.
    """
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file '{config_path}' not found") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file '{config_path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config file '{config_path}': {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{config_path}' must contain a mapping")

    config = ProvisionConfig.from_dict(raw)
    for secret in config.secrets():
        register_secret(secret)
    logger.debug(f"Loaded config from {config_path}")
    return config


def _expand_path(path: str) -> str:
    """Expand user home directory and environment variables in path."""
    return os.path.expanduser(os.path.expandvars(path))
