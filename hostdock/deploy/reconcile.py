"""Service reconciler: converge the host to the rendered desired state."""

import contextlib
import enum
import logging
from dataclasses import dataclass, field

from hostdock.deploy.profile import (
    UNCHANGED,
    ensure_profile,
    is_listed,
    list_models,
    pull_base,
    wait_for_runtime,
)
from hostdock.errors import DeployError, ReconcileError
from hostdock.render.ollama import ollama_host
from hostdock.spec.types import LITELLM, OLLAMA

logger = logging.getLogger(__name__)

SYSTEMCTL_TIMEOUT = 120
UV_TIMEOUT = 1800
WARMUP_TIMEOUT = 1300
LITELLM_PACKAGE = "litellm[proxy]"


class ServiceState(enum.Enum):
    ABSENT = "absent"
    INSTALLED_STOPPED = "installed-stopped"
    INSTALLED_RUNNING = "installed-running"


@dataclass
class ReconcileOutcome:
    """What a reconciliation pass did and the state it left behind."""

    state: ServiceState
    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    restarted: bool = False
    profile_action: str | None = None


@contextlib.contextmanager
def _step(name):
    """Tag OS-level failures with the step they happened in."""
    try:
        yield
    except DeployError:
        raise
    except (OSError, LookupError) as e:
        raise ReconcileError(name, str(e)) from e


async def _check(run_cmd, step, command, timeout=SYSTEMCTL_TIMEOUT, **kwargs):
    rc, stdout, stderr = await run_cmd(command, timeout=timeout, **kwargs)
    if rc != 0:
        detail = stderr.strip() or stdout.strip() or f"exit code {rc}"
        raise ReconcileError(step, f"'{' '.join(command)}' failed: {detail}")
    return stdout


async def observe_state(host, identity):
    """Read the current service state from the unit file and systemd."""
    if not host.exists(identity.unit_path):
        return ServiceState.ABSENT
    rc, _, _ = await host.run_cmd(["systemctl", "is-active", "--quiet", identity.unit_name], timeout=30)
    return ServiceState.INSTALLED_RUNNING if rc == 0 else ServiceState.INSTALLED_STOPPED


async def ensure_user(host, identity):
    rc, _, _ = await host.run_cmd(["id", "-u", identity.user], timeout=30)
    if rc == 0:
        logger.debug(f"User {identity.user} exists")
        return
    logger.info(f"Creating system user {identity.user}")
    await _check(
        host.run_cmd,
        "user",
        ["useradd", "--system", "--home-dir", identity.app_dir, "--shell", "/usr/sbin/nologin", identity.user],
    )


def ensure_directories(host, spec):
    ident = spec.identity
    with _step("directories"):
        host.ensure_dir(ident.app_dir, owner=ident.user, group=ident.user, recursive_owner=True)
        host.ensure_dir(ident.config_dir)
        if spec.profile is not None and spec.profile.model_dir != ident.config_dir:
            host.ensure_dir(spec.profile.model_dir)


async def prepare_litellm(host, spec, uv_bin):
    """uv project with litellm[proxy] in <app_dir>, owned by the service user."""
    ident = spec.identity
    as_user = ["runuser", "-u", ident.user, "--", "env", f"HOME={ident.app_dir}"]
    if not host.exists(f"{ident.app_dir}/pyproject.toml"):
        logger.info(f"Initializing uv project in {ident.app_dir}")
        await _check(host.run_cmd, "prepare", [*as_user, uv_bin, "init", "--no-readme", ident.app_dir], timeout=UV_TIMEOUT)
    logger.info(f"Installing {LITELLM_PACKAGE} with uv")
    await _check(
        host.run_cmd,
        "prepare",
        [*as_user, uv_bin, "add", "--directory", ident.app_dir, LITELLM_PACKAGE],
        timeout=UV_TIMEOUT,
        log_output=True,
    )


async def prepare_ollama(host, spec):
    hugepages = spec.runtime.hugepages
    if hugepages > 0:
        logger.info(f"Configuring huge pages: vm.nr_hugepages={hugepages}")
        await _check(host.run_cmd, "prepare", ["sysctl", "-w", f"vm.nr_hugepages={hugepages}"])


async def reconcile_profile(host, spec, ollama_bin):
    """Pull the base model if missing and create the derived profile if absent or forced."""
    env = {"OLLAMA_HOST": ollama_host(spec)}
    profile = spec.profile
    await wait_for_runtime(host.run_cmd, ollama_bin, env)
    names = await list_models(host.run_cmd, ollama_bin, env)
    if spec.force_recreate or not is_listed(profile.base_model, names):
        await pull_base(host.run_cmd, ollama_bin, profile.base_model, env)
    return await ensure_profile(
        host.run_cmd,
        ollama_bin,
        profile,
        host.path(profile.modelfile_path),
        names,
        spec.force_recreate,
        env,
    )


async def start_warmup(host, spec):
    """Enable and run the warm-up unit. Failure here is not fatal."""
    unit = spec.warmup_unit_name
    await _check(host.run_cmd, "warmup", ["systemctl", "enable", unit])
    rc, _, stderr = await host.run_cmd(["systemctl", "start", unit], timeout=WARMUP_TIMEOUT)
    if rc != 0:
        logger.warning(f"Warm-up unit {unit} did not finish cleanly: {stderr.strip()}")


async def reconcile(params, artifacts, host, tool_path=None):
    """Converge the service described by params.spec.

    Steps: user, directories, prepare, artifacts, daemon-reload, enable/start,
    profile, warmup. A failing step raises ReconcileError naming the step;
    earlier steps are not rolled back.

    Args:
        params: DeployParams
        artifacts: rendered artifacts to write
        host: LocalHost (or a stand-in with the same interface)
        tool_path: resolved runtime tool (uv for litellm, ollama for ollama)

    Returns:
        ReconcileOutcome whose ``state`` is the observed ServiceState.
    """
    spec = params.spec
    ident = spec.identity
    outcome = ReconcileOutcome(state=await observe_state(host, ident))
    logger.info(f"Current state of {ident.unit_name}: {outcome.state.value}")

    # Step 1: service user
    await ensure_user(host, ident)

    # Step 2: directories
    ensure_directories(host, spec)

    # Step 3: runtime preparation
    if spec.kind == LITELLM:
        await prepare_litellm(host, spec, tool_path)
    elif spec.kind == OLLAMA:
        await prepare_ollama(host, spec)

    # Step 4: artifacts
    needs_restart = False
    with _step("artifacts"):
        for artifact in artifacts:
            if host.write_artifact(artifact):
                outcome.written.append(artifact.path)
                needs_restart = needs_restart or artifact.restarts_service
            else:
                outcome.unchanged.append(artifact.path)

    # Step 5: reload unit definitions
    await _check(host.run_cmd, "daemon-reload", ["systemctl", "daemon-reload"])

    # Step 6: enable for boot and start now; restart a running service whose config changed
    if outcome.state is ServiceState.INSTALLED_RUNNING and needs_restart:
        await _check(host.run_cmd, "enable", ["systemctl", "enable", ident.unit_name])
        logger.info(f"Restarting {ident.unit_name} to apply changed configuration")
        await _check(host.run_cmd, "enable", ["systemctl", "restart", ident.unit_name])
        outcome.restarted = True
    else:
        await _check(host.run_cmd, "enable", ["systemctl", "enable", "--now", ident.unit_name])

    # Step 7: derived profile
    if spec.kind == OLLAMA and spec.profile is not None:
        outcome.profile_action = await reconcile_profile(host, spec, tool_path)
        if outcome.profile_action == UNCHANGED and spec.profile.modelfile_path in outcome.written:
            logger.warning(f"Modelfile changed but {spec.profile.name} already exists; pass --force-recreate to rebuild it")

    # Step 8: warm-up
    if spec.kind == OLLAMA and spec.warmup:
        await start_warmup(host, spec)

    outcome.state = await observe_state(host, ident)
    logger.info(f"State of {ident.unit_name}: {outcome.state.value}")
    return outcome
