"""Provisioning orchestration: create the node, connect, run the recipe.

The run is fail-fast: the first error aborts it and propagates unchanged.
A node created before the failure is left as is for the operator.
"""

import asyncio
import logging
import os

from stkdock.config import ReadinessConfig, SSHConfig
from stkdock.errors import ProvisionError
from stkdock.provisioning.credentials import load_credentials
from stkdock.provisioning.ovh import OVHDriver
from stkdock.provisioning.readiness import connect_with_retry, wait_for_node
from stkdock.provisioning.relay import start_relay
from stkdock.provisioning.sequencer import format_command, send_commands, wait_for_exit
from stkdock.provisioning.session import dial, open_shell
from stkdock.provisioning.types import CreateRequest
from stkdock.recipe import build_commands, load_commands_file

logger = logging.getLogger(__name__)


async def _stop_relay(tasks):
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def run_session(session, commands, stdout=None, stderr=None):
    """Relay output, send *commands* and wait for the shell to exit.

    The session is closed on every path.

    Returns:
        0 when the remote shell exits cleanly.
    """
    async with session:
        relay_tasks = start_relay(session, stdout, stderr)
        try:
            await send_commands(session.stdin, commands)
        except BaseException:
            await _stop_relay(relay_tasks)
            raise

        try:
            status = await wait_for_exit(session)
        except ProvisionError:
            # the shell is gone, so the relays hit EOF on their own
            await asyncio.gather(*relay_tasks)
            raise
        except BaseException:
            await _stop_relay(relay_tasks)
            raise
        await asyncio.gather(*relay_tasks)
        return status


async def provision(
    driver,
    request,
    key,
    commands,
    readiness=None,
    ssh=None,
    dry_run=False,
    stdout=None,
    stderr=None,
    sleep=asyncio.sleep,
):
    """Create a node and run *commands* in an interactive shell on it.

    Steps, strictly in order: create, readiness barrier, connect (with
    bounded retry), open shell, start output relay, send commands, wait
    for the shell to exit.

    Args:
        driver: ComputeDriver used to create the node.
        request: CreateRequest describing the node.
        key: asyncssh private key used to authenticate.
        commands: ordered list of token lists.
        readiness: ReadinessConfig (delay and retry window).
        ssh: SSHConfig (port and host key policy).
        dry_run: log the plan instead of connecting to the node.

    Returns:
        0 on success.

    Raises:
        ProvisionError: any step failed. Nothing is retried or rolled back.
    """
    readiness = readiness or ReadinessConfig()
    ssh = ssh or SSHConfig()

    logger.info("Creating node...")
    node = await driver.create(request)
    host = node.ipv4
    logger.info(f"Node created (id={node.id}, host={host}).")

    if dry_run:
        logger.info(f"[dry-run] wait {readiness.delay}s, then ssh {node.user}@{host}:{ssh.port}")
        for tokens in commands:
            logger.info(f"[dry-run] + {format_command(tokens)}")
        return 0

    try:
        await wait_for_node(readiness.delay, sleep=sleep)

        logger.info(f"Connecting to {node.user}@{host}:{ssh.port}...")

        async def connect():
            return await dial(
                host,
                node.user,
                key,
                port=ssh.port,
                host_key_policy=ssh.host_key_policy,
                known_hosts=ssh.known_hosts,
                connect_timeout=readiness.connect_timeout,
            )

        conn = await connect_with_retry(
            connect,
            timeout=readiness.timeout,
            interval=readiness.interval,
            backoff=readiness.backoff,
            max_interval=readiness.max_interval,
            sleep=sleep,
        )
        session = await open_shell(conn)
        logger.info("Connected. Running commands...")
        status = await run_session(session, commands, stdout, stderr)
    except ProvisionError:
        logger.error(f"Node {node.id} ({host}) is still running and may be partially configured.")
        raise

    logger.info("Remote shell exited cleanly.")
    return status


async def run_from_config(config, driver=None, dry_run=False, stdout=None, stderr=None):
    """Run the whole workflow for a loaded ProvisionConfig."""
    if dry_run and not os.path.exists(config.identity_file):
        logger.info(f"[dry-run] identity file {config.identity_file} not found, using a placeholder key")
        public_key, private_key = "dry-run-placeholder", None
    else:
        credentials = load_credentials(config.identity_file)
        public_key, private_key = credentials.public_key, credentials.private_key

    if config.commands_file:
        commands = load_commands_file(config.commands_file, config.stk_username, config.stk_password)
    else:
        commands = build_commands(config.stk_username, config.stk_password)

    if driver is None:
        driver = OVHDriver(
            app_key=config.ovh.app_key,
            app_secret=config.ovh.app_secret,
            consumer_key=config.ovh.consumer_key,
            project_id=config.ovh.project_id,
            endpoint=config.ovh.endpoint,
            dry_run=dry_run,
        )

    request = CreateRequest(
        name=config.node.name,
        region=config.node.region,
        sku=config.node.sku,
        ssh_key=public_key,
        billing=config.node.billing,
        user=driver.default_user(),
        image=config.node.image,
    )
    return await provision(
        driver,
        request,
        private_key,
        commands,
        readiness=config.readiness,
        ssh=config.ssh,
        dry_run=dry_run,
        stdout=stdout,
        stderr=stderr,
    )
