"""Shared CLI plumbing for deploy targets: common flags, settings merge, error reporting."""

import asyncio
import logging
import sys

from hostdock.deploy import DeployParams, deploy
from hostdock.errors import DeployError
from hostdock.redact import register_secret
from hostdock.spec import (
    DEFAULTS,
    build_spec,
    load_config_file,
    merge_settings,
    missing_required,
)

logger = logging.getLogger(__name__)


def add_common_arguments(parser, kind):
    """Identity and execution flags shared by every service kind."""
    defaults = DEFAULTS[kind]
    parser.add_argument("--service-name", default=None, help=f"Systemd unit name (default: {defaults['service_name']})")
    parser.add_argument(
        "--service-user", default=None, help=f"Unix user to run the service (default: {defaults['service_user']})"
    )
    parser.add_argument("--app-dir", default=None, help=f"Service working/home directory (default: {defaults['app_dir']})")
    parser.add_argument(
        "--config-dir", default=None, help=f"Directory for config/env files (default: {defaults['config_dir']})"
    )
    parser.add_argument("--port", type=int, default=None, help=f"Port to listen on (default: {defaults['port']})")
    parser.add_argument("--config", default=None, metavar="FILE", help="YAML file with default values for these flags")
    parser.add_argument("--dry-run", action="store_true", help="Print commands and file writes without executing")
    parser.add_argument("--no-smoke", action="store_true", help="Skip the post-deploy smoke test")
    parser.add_argument(
        "--smoke-delay", type=float, default=2.0, help="Seconds to wait before the first smoke probe (default: 2)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def _cli_settings(args, kind):
    return {key: getattr(args, key) for key in DEFAULTS[kind] if hasattr(args, key)}


def _fail(error):
    logger.error(f"Error: {error}")
    if error.hint:
        logger.error(f"Hint: {error.hint}")
    sys.exit(1)


def run_target(args, kind):
    """Merge settings, validate, and run the deployment for one service kind."""
    try:
        config = load_config_file(args.config) if args.config else {}
        settings = merge_settings(kind, _cli_settings(args, kind), config)
    except DeployError as e:
        _fail(e)

    missing = missing_required(kind, settings)
    if missing:
        args.parser.error(f"Missing required flags: {' '.join(missing)}")

    try:
        spec = build_spec(kind, settings)
        for secret in spec.secrets:
            register_secret(secret)
        params = DeployParams(
            spec=spec,
            dry_run=args.dry_run,
            smoke=not args.no_smoke,
            smoke_delay=args.smoke_delay,
        )
        report = asyncio.run(deploy(params))
    except DeployError as e:
        _fail(e)

    if report.probe_failures:
        logger.warning(f"{len(report.probe_failures)} smoke probe(s) failed (advisory, deployment succeeded)")
