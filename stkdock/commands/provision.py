"""Provision command: create a node and build the game server on it."""

import asyncio
import logging
import sys

from stkdock.config import load_config
from stkdock.errors import ProvisionError
from stkdock.orchestrate import run_from_config

logger = logging.getLogger(__name__)


def handle_provision(args):
    """CLI handler for 'provision'."""
    asyncio.run(_handle_provision(args))


async def _handle_provision(args):
    try:
        config = load_config(args.config)
        await run_from_config(config, dry_run=args.dry_run)
    except ProvisionError as e:
        logger.error(f"Error [{e.stage}]: {e}")
        sys.exit(1)
    logger.info("Provisioning finished.")


def register_provision_command(subparsers):
    """Register the 'provision' command."""
    parser = subparsers.add_parser("provision", help="Create a node and set up the game server on it")
    parser.add_argument("--config", "--path", dest="config", required=True, help="Path to config file (YAML or JSON)")
    parser.add_argument("--dry-run", action="store_true", help="Log provider requests and commands without executing")
    parser.set_defaults(func=handle_provision)
