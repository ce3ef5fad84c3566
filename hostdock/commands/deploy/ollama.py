"""Ollama deploy target: local model runtime with CPU tuning and a derived model profile."""

import argparse

from hostdock.commands.deploy import add_common_arguments, run_target
from hostdock.spec import OLLAMA

EPILOG = """\
Examples:
  sudo hostdock deploy ollama --install-ollama

  sudo hostdock deploy ollama \\
    --base-model llama3.1:8b-instruct-q4_K_M \\
    --profile-name llama3.1-8b-cpu-opt \\
    --num-ctx 4096 --threads 2 --hugepages 1024 \\
    --install-ollama --force-recreate
"""


def handle_ollama(args):
    """Handle the ollama deploy target."""
    run_target(args, OLLAMA)


def register_ollama_target(subparsers):
    """Register the ollama deploy target."""
    parser = subparsers.add_parser(
        "ollama",
        help="Deploy an Ollama server with a derived model profile",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--base-model", default=None, help="Base model to pull and derive from")
    parser.add_argument("--profile-name", default=None, help="Name for the derived model profile (default: cpu-opt)")
    parser.add_argument("--num-ctx", type=int, default=None, help="Context window tokens (default: 4096)")
    parser.add_argument("--threads", type=int, default=None, help="Threads for OMP/GGML/OLLAMA (default: CPU count)")
    parser.add_argument("--temperature", type=float, default=None, help="Temperature (default: 0.7)")
    parser.add_argument("--top-p", type=float, default=None, help="Top-p (default: 0.9)")
    parser.add_argument("--top-k", type=int, default=None, help="Top-k (default: 40)")
    parser.add_argument("--repeat-penalty", type=float, default=None, help="Repeat penalty (default: 1.1)")
    parser.add_argument("--hugepages", type=int, default=None, help="Persistent vm.nr_hugepages, 0 = skip (default: 0)")
    parser.add_argument("--keep-alive", default=None, help="Keep-alive for loaded models, e.g. 5m or 1h")
    parser.add_argument(
        "--install-ollama",
        action="store_true",
        default=None,
        help="Install Ollama with the official install script if missing",
    )
    parser.add_argument(
        "--no-warmup",
        dest="warmup",
        action="store_false",
        default=None,
        help="Do not create/enable the warm-up service",
    )
    parser.add_argument(
        "--force-recreate",
        action="store_true",
        default=None,
        help="Always recreate the derived model profile",
    )
    add_common_arguments(parser, OLLAMA)
    parser.set_defaults(func=handle_ollama, parser=parser)
