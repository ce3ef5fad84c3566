"""Dependency installer: resolve a tool on the host, install it via the vendor script if allowed."""

import logging
import os
import shlex
import shutil
from dataclasses import dataclass, field

from hostdock.errors import DependencyMissing, InstallationFailed

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT = 900
PACKAGE_TIMEOUT = 900


@dataclass(frozen=True)
class ToolInstaller:
    """How to find and, if needed, install one external tool."""

    name: str
    script_url: str
    install_hint: str  # remediation shown when the tool is missing
    env: dict[str, str] = field(default_factory=dict)
    search_dirs: tuple[str, ...] = ()
    use_path: bool = True  # also search $PATH after search_dirs
    packages: tuple[str, ...] = ("curl", "ca-certificates")
    run_as: str | None = None  # run the install script as this user instead of root

    @property
    def install_command(self) -> str:
        command = f"curl -fsSL {shlex.quote(self.script_url)} | sh"
        if self.run_as is None:
            return command
        env = " ".join(f"{k}={shlex.quote(v)}" for k, v in self.env.items())
        return f"runuser -u {shlex.quote(self.run_as)} -- env {env} sh -c {shlex.quote(command)}"

    @property
    def expected_path(self) -> str:
        """Best guess of where the tool lands, for dry-run reporting."""
        if self.search_dirs:
            return os.path.join(self.search_dirs[0], self.name)
        return f"/usr/local/bin/{self.name}"


OLLAMA = ToolInstaller(
    name="ollama",
    script_url="https://ollama.com/install.sh",
    install_hint="use --install-ollama or install ollama manually",
)


def uv_installer(app_dir, user):
    """uv installed privately under <app_dir>/uv by the service user itself."""
    uv_dir = f"{app_dir}/uv"
    return ToolInstaller(
        name="uv",
        script_url="https://astral.sh/uv/install.sh",
        install_hint=f"drop --no-install-uv or install uv into {uv_dir}",
        env={"HOME": app_dir, "UV_INSTALL_DIR": uv_dir, "UV_NO_MODIFY_PATH": "1"},
        search_dirs=(uv_dir, f"{uv_dir}/bin"),
        use_path=False,
        run_as=user,
    )


def resolve(tool):
    """Resolved path of *tool*, searching its own dirs before $PATH. None if absent."""
    dirs = list(tool.search_dirs)
    if tool.use_path:
        dirs.append(os.environ.get("PATH", os.defpath))
    return shutil.which(tool.name, path=os.pathsep.join(dirs))


def require(name, hint):
    """Resolve a tool that has no installer. Raises DependencyMissing if absent."""
    path = shutil.which(name)
    if path is None:
        raise DependencyMissing(f"'{name}' not found on PATH", hint=hint)
    return path


async def ensure_packages(packages, run_cmd):
    """Install the Debian packages that are not installed yet."""
    missing = []
    for pkg in packages:
        rc, stdout, _ = await run_cmd(["dpkg-query", "-W", "-f=${Status}", pkg])
        if rc != 0 or "install ok installed" not in stdout:
            missing.append(pkg)
    if not missing:
        return

    logger.info(f"Installing packages: {' '.join(missing)}")
    env = {"DEBIAN_FRONTEND": "noninteractive"}
    rc, _, stderr = await run_cmd(["apt-get", "update", "-y"], timeout=PACKAGE_TIMEOUT, env=env)
    if rc == 0:
        rc, _, stderr = await run_cmd(["apt-get", "install", "-y", *missing], timeout=PACKAGE_TIMEOUT, env=env)
    if rc != 0:
        raise InstallationFailed(
            f"Failed to install packages {', '.join(missing)}: {stderr.strip()}",
            hint=f"install {' '.join(missing)} with your package manager and rerun",
        )


async def ensure(tool, install_enabled, run_cmd, dry_run=False, before_install=None):
    """Return the path of *tool*, installing it first if absent and allowed.

    Idempotent: when the tool already resolves nothing is executed.
    before_install, if given, is awaited right before the install script runs.

    Raises:
        DependencyMissing: tool absent and install_enabled is False
        InstallationFailed: the install procedure failed or the tool still
            does not resolve afterwards
    """
    path = resolve(tool)
    if path is not None:
        logger.info(f"{tool.name} found: {path}")
        return path

    if not install_enabled:
        raise DependencyMissing(f"{tool.name} not found", hint=tool.install_hint)

    logger.info(f"Installing {tool.name}...")
    await ensure_packages(tool.packages, run_cmd)
    if before_install is not None:
        await before_install()
    rc, _, stderr = await run_cmd(tool.install_command, timeout=INSTALL_TIMEOUT, env=tool.env, log_output=True)
    if dry_run:
        return tool.expected_path
    if rc != 0:
        raise InstallationFailed(f"{tool.name} install script exited with {rc}: {stderr.strip()}")

    path = resolve(tool)
    if path is None:
        raise InstallationFailed(f"{tool.name} still not found after running its install script")
    logger.info(f"{tool.name} installed: {path}")
    return path
