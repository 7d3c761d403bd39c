"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import asyncssh
import pytest
import yaml

import stkdock.redact as redact_module
from tests.fakes import FakeConnection, FakeDriver, FakeProcess

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the stkdock CLI as a subprocess."""

    def _run(*args, env=None):
        result = subprocess.run(
            [sys.executable, "-m", "stkdock.stkdock", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env={**os.environ, **(env or {})},
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture(autouse=True)
def reset_redaction():
    """Keep registered secrets from leaking between tests."""
    redact_module._registered.clear()
    redact_module._patterns = None
    yield
    redact_module._registered.clear()
    redact_module._patterns = None


@pytest.fixture
def events():
    """Ordered log of everything the fakes observe."""
    return []


@pytest.fixture
def make_connection(events):
    """Factory for a FakeConnection wrapping a FakeProcess."""

    def _make(open_error=None, **process_kwargs):
        process = FakeProcess(events, **process_kwargs)
        return FakeConnection(events, process=process, open_error=open_error)

    return _make


@pytest.fixture
def fake_driver(events):
    return FakeDriver(events)


@pytest.fixture
def recording_sleep(events):
    """An asyncio.sleep replacement that records the requested delay."""

    async def _sleep(seconds):
        events.append(("sleep", seconds))

    return _sleep


# ── Config fixtures ─────────────────────────────────────────────────


@pytest.fixture
def key_pair(tmp_path):
    """Write a fresh ed25519 key pair; return the private key path."""
    key = asyncssh.generate_private_key("ssh-ed25519")
    path = tmp_path / "id_ed25519"
    key.write_private_key(str(path))
    key.write_public_key(str(path) + ".pub")
    return str(path)


@pytest.fixture
def make_config_file(tmp_path):
    """Return a factory that writes a config.yaml and returns its path."""

    def _make(identity_file=None, **overrides):
        config = {
            "identity_file": identity_file or str(tmp_path / "missing_key"),
            "ovh_config": {
                "app_key": "app-key-1234",
                "app_secret": "app-secret-abcdef",
                "consumer_key": "consumer-key-abcdef",
                "project_id": "project-42",
            },
            "stk_username": "racer",
            "stk_password": "hunter2pass",
            "readiness": {"delay": 0},
        }
        config.update(overrides)
        config_path = tmp_path / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(config, f)
        return str(config_path)

    return _make
