"""Host provisioning: shell helper, dependency installer, filesystem, locking."""

from hostdock.provisioning.host import LocalHost
from hostdock.provisioning.installer import (
    OLLAMA,
    ToolInstaller,
    ensure,
    ensure_packages,
    require,
    resolve,
    uv_installer,
)
from hostdock.provisioning.lock import service_lock
from hostdock.provisioning.shell import format_command, make_run_cmd

__all__ = [
    "OLLAMA",
    "LocalHost",
    "ToolInstaller",
    "ensure",
    "ensure_packages",
    "format_command",
    "make_run_cmd",
    "require",
    "resolve",
    "service_lock",
    "uv_installer",
]
