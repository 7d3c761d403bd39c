#!/usr/bin/env python3
"""SuperTuxKart server provisioning CLI entrypoint."""

import argparse

from stkdock.commands.provision import register_provision_command
from stkdock.commands.recipe import register_recipe_command
from stkdock.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Provision a SuperTuxKart dedicated server on a cloud node")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_provision_command(subparsers)
    register_recipe_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
