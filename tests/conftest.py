"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest

from hostdock.provisioning.host import LocalHost
from hostdock.spec import LITELLM, OLLAMA, build_spec, merge_settings

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))

# Secrets from the developer's shell must not leak into CLI tests
_SCRUBBED_ENV = ("AZURE_API_KEY", "LITELLM_MASTER_KEY")


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the hostdock CLI as a subprocess."""
    env = {k: v for k, v in os.environ.items() if k not in _SCRUBBED_ENV}

    def _run(*args):
        result = subprocess.run(
            [sys.executable, "-m", "hostdock.hostdock", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


class FakeRunner:
    """Recording run_cmd stand-in that simulates systemd and the Ollama CLI."""

    def __init__(self):
        self.calls = []
        self.running = set()
        self.models = set()
        self.failures = {}

    def fail(self, *prefix, rc=1, stderr="boom"):
        """Make every command starting with *prefix* fail."""
        self.failures[prefix] = (rc, "", stderr)

    def count(self, *prefix):
        return sum(1 for c in self.calls if isinstance(c, list) and tuple(c[: len(prefix)]) == prefix)

    async def __call__(self, command, timeout=None, env=None, log_output=False):
        self.calls.append(command)
        if isinstance(command, str):
            return 0, "", ""
        for prefix, result in self.failures.items():
            if tuple(command[: len(prefix)]) == prefix:
                return result

        if command[:2] == ["systemctl", "is-active"]:
            return (0 if command[-1] in self.running else 3), "", ""
        if command[:3] == ["systemctl", "enable", "--now"]:
            self.running.add(command[3])
        elif command[:2] in (["systemctl", "restart"], ["systemctl", "start"]):
            self.running.add(command[2])
        elif os.path.basename(command[0]) == "ollama":
            return self._ollama(command[1:])
        return 0, "", ""

    def _ollama(self, args):
        if args[0] == "list":
            lines = ["NAME                ID              SIZE      MODIFIED"]
            lines += [f"{name}    a80c4f17acd5    4.9 GB    2 minutes ago" for name in sorted(self.models)]
            return 0, "\n".join(lines) + "\n", ""
        if args[0] == "pull":
            self.models.add(args[1])
        elif args[0] == "create":
            name = args[1]
            self.models.add(name if ":" in name else f"{name}:latest")
        return 0, "", ""


@pytest.fixture
def fake_run():
    return FakeRunner()


@pytest.fixture
def host(tmp_path, fake_run):
    """LocalHost staging all writes below tmp_path, with commands faked."""
    return LocalHost(run_cmd=fake_run, root=str(tmp_path), apply_ownership=False)


@pytest.fixture
def make_ollama_spec():
    """Return a factory for ollama DeploymentSpecs; keyword args override settings."""

    def _make(**overrides):
        cli = {"base_model": "base-model-x", "profile_name": "cpu-opt", "num_ctx": 4096, "threads": 2}
        cli.update(overrides)
        return build_spec(OLLAMA, merge_settings(OLLAMA, cli, environ={}))

    return _make


@pytest.fixture
def ollama_spec(make_ollama_spec):
    return make_ollama_spec()


@pytest.fixture
def litellm_settings():
    """CLI settings for a complete litellm deployment."""
    return {
        "azure_api_base": "https://example-foundry.services.ai.azure.com",
        "azure_api_key": "az-test-key-0123456789",
        "azure_api_version": "2024-05-01-preview",
        "model_name": "phi-4-mini",
        "deployment": "azure/Phi-4-mini-instruct",
    }


@pytest.fixture
def make_litellm_spec(litellm_settings):
    """Return a factory for litellm DeploymentSpecs; keyword args override settings."""

    def _make(**overrides):
        cli = dict(litellm_settings)
        cli.update(overrides)
        return build_spec(LITELLM, merge_settings(LITELLM, cli, environ={}))

    return _make


@pytest.fixture
def litellm_spec(make_litellm_spec):
    return make_litellm_spec()
