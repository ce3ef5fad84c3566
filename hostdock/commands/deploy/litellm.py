"""LiteLLM deploy target: Azure-backed LiteLLM proxy as a systemd service."""

import argparse

from hostdock.commands.deploy import add_common_arguments, run_target
from hostdock.spec import LITELLM

EPILOG = """\
Example:
  hostdock deploy litellm \\
    --azure-api-base https://your-foundry.services.ai.azure.com \\
    --azure-api-key $AZURE_KEY \\
    --azure-api-version 2024-05-01-preview \\
    --model-name phi-4-mini \\
    --deployment azure/Phi-4-mini-instruct
"""


def handle_litellm(args):
    """Handle the litellm deploy target."""
    run_target(args, LITELLM)


def register_litellm_target(subparsers):
    """Register the litellm deploy target."""
    parser = subparsers.add_parser(
        "litellm",
        help="Deploy a LiteLLM proxy in front of an Azure AI deployment",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--azure-api-base", default=None, help="Azure resource base URL (not a /models path)")
    parser.add_argument("--azure-api-key", default=None, help="Azure API key (default: $AZURE_API_KEY)")
    parser.add_argument("--azure-api-version", default=None, help="Azure API version, e.g. 2024-05-01-preview")
    parser.add_argument("--model-name", default=None, help="Public model alias clients use")
    parser.add_argument("--deployment", default=None, help="Provider model string, e.g. azure/Phi-4-mini-instruct")
    parser.add_argument(
        "--master-key", default=None, help="Proxy master key clients must send (default: $LITELLM_MASTER_KEY)"
    )
    parser.add_argument(
        "--no-install-uv",
        dest="install_uv",
        action="store_false",
        default=None,
        help="Fail instead of installing uv when it is missing",
    )
    add_common_arguments(parser, LITELLM)
    parser.set_defaults(func=handle_litellm, parser=parser)
