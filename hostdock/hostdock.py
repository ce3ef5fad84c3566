#!/usr/bin/env python3
"""Single-host service deployment tools: CLI entrypoint."""

import argparse
import sys

from hostdock.commands.deploy.litellm import register_litellm_target
from hostdock.commands.deploy.ollama import register_ollama_target
from hostdock.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Single-host service deployment tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # deploy subcommand with one sub-subcommand per service kind
    deploy_parser = subparsers.add_parser("deploy", help="Install and reconcile a systemd service")
    deploy_subparsers = deploy_parser.add_subparsers(dest="target", required=True)

    register_litellm_target(deploy_subparsers)
    register_ollama_target(deploy_subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    try:
        args.func(args)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
