"""Recipe command: print the command lines a run would send."""

import logging
import sys

from stkdock.config import load_config
from stkdock.errors import ProvisionError
from stkdock.provisioning.sequencer import format_command
from stkdock.recipe import build_commands, load_commands_file
from stkdock.redact import redact_secrets

logger = logging.getLogger(__name__)


def handle_recipe(args):
    """CLI handler for 'recipe'."""
    try:
        config = load_config(args.config)
        if config.commands_file:
            commands = load_commands_file(config.commands_file, config.stk_username, config.stk_password)
        else:
            commands = build_commands(config.stk_username, config.stk_password)
    except ProvisionError as e:
        logger.error(f"Error [{e.stage}]: {e}")
        sys.exit(1)

    for tokens in commands:
        print(redact_secrets(format_command(tokens)))


def register_recipe_command(subparsers):
    """Register the 'recipe' command."""
    parser = subparsers.add_parser("recipe", help="Print the commands that would be sent to the node")
    parser.add_argument("--config", "--path", dest="config", required=True, help="Path to config file (YAML or JSON)")
    parser.set_defaults(func=handle_recipe)
