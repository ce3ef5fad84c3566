"""Derived model profiles via the Ollama CLI: list, pull, create."""

import asyncio
import logging

from hostdock.errors import ReconcileError

logger = logging.getLogger(__name__)

LIST_TIMEOUT = 60
PULL_TIMEOUT = 3600
CREATE_TIMEOUT = 1800
READY_TIMEOUT = 60
READY_INTERVAL = 2

CREATED = "created"
RECREATED = "recreated"
UNCHANGED = "unchanged"


def parse_model_list(stdout):
    """Model names from ``ollama list`` output (first column, header skipped)."""
    names = set()
    for line in stdout.splitlines():
        fields = line.split()
        if not fields or fields[0] == "NAME":
            continue
        names.add(fields[0])
    return names


def is_listed(name, names):
    """Ollama lists untagged models with an implicit ``:latest`` tag."""
    if name in names:
        return True
    return ":" not in name.rsplit("/", 1)[-1] and f"{name}:latest" in names


async def list_models(run_cmd, ollama_bin, env):
    rc, stdout, stderr = await run_cmd([ollama_bin, "list"], timeout=LIST_TIMEOUT, env=env)
    if rc != 0:
        raise ReconcileError("profile", f"'ollama list' failed: {stderr.strip()}")
    return parse_model_list(stdout)


async def wait_for_runtime(run_cmd, ollama_bin, env, timeout=READY_TIMEOUT, interval=READY_INTERVAL, sleep=asyncio.sleep):
    """Poll ``ollama list`` until the freshly started server answers."""
    elapsed = 0
    while True:
        rc, _, stderr = await run_cmd([ollama_bin, "list"], timeout=LIST_TIMEOUT, env=env)
        if rc == 0:
            return
        if elapsed >= timeout:
            raise ReconcileError(
                "profile",
                f"Ollama server not reachable after {timeout}s: {stderr.strip()}",
                hint="check the server with: journalctl -u <service> -f",
            )
        await sleep(interval)
        elapsed += interval


async def pull_base(run_cmd, ollama_bin, base_model, env):
    logger.info(f"Pulling base model: {base_model}")
    rc, _, stderr = await run_cmd([ollama_bin, "pull", base_model], timeout=PULL_TIMEOUT, env=env, log_output=True)
    if rc != 0:
        raise ReconcileError("profile", f"Failed to pull base model {base_model}: {stderr.strip()}")


async def ensure_profile(run_cmd, ollama_bin, profile, modelfile, names, force, env):
    """Create the derived profile unless it already exists.

    Args:
        profile: ProfileSpec
        modelfile: path of the rendered Modelfile on the host
        names: model names currently known to the runtime
        force: recreate even if present

    Returns:
        CREATED, RECREATED or UNCHANGED
    """
    exists = is_listed(profile.name, names)
    if exists and not force:
        logger.info(f"Derived model already exists: {profile.name} (use --force-recreate to update)")
        return UNCHANGED

    if exists:
        logger.info(f"Recreating derived model (forced): {profile.name}")
    else:
        logger.info(f"Creating derived model: {profile.name}")
    rc, _, stderr = await run_cmd(
        [ollama_bin, "create", profile.name, "-f", modelfile],
        timeout=CREATE_TIMEOUT,
        env=env,
        log_output=True,
    )
    if rc != 0:
        raise ReconcileError("profile", f"Failed to create derived model {profile.name}: {stderr.strip()}")
    return RECREATED if exists else CREATED
