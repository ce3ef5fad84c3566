"""Deploy orchestration: dependencies, render, reconcile, smoke test, summary."""

import logging
import os
from dataclasses import dataclass, field

from hostdock.deploy.params import DeployParams
from hostdock.deploy.reconcile import ReconcileOutcome, ensure_directories, ensure_user, reconcile
from hostdock.deploy.smoke import ProbeResult, probes_for, verify
from hostdock.errors import DependencyMissing, PrivilegeError
from hostdock.provisioning.host import LocalHost
from hostdock.provisioning.installer import OLLAMA as OLLAMA_INSTALLER
from hostdock.provisioning.installer import ensure, require, uv_installer
from hostdock.provisioning.lock import service_lock
from hostdock.render import render
from hostdock.spec.types import LITELLM

logger = logging.getLogger(__name__)


@dataclass
class DeployReport:
    """Summary of one deployment run."""

    params: DeployParams
    tool_path: str
    outcome: ReconcileOutcome
    probes: list[ProbeResult] = field(default_factory=list)

    @property
    def probe_failures(self):
        return [p.error for p in self.probes if p.error is not None]


def check_privileges(dry_run=False, euid=None):
    """Provisioning writes system files and manages units, so it needs root."""
    euid = os.geteuid() if euid is None else euid
    if euid != 0 and not dry_run:
        raise PrivilegeError("This command needs root privileges.")


def installer_for(spec):
    if spec.kind == LITELLM:
        return uv_installer(spec.identity.app_dir, spec.identity.user)
    return OLLAMA_INSTALLER


def _owner_setup(spec, host):
    """Create the service user and its app dir before the uv install script runs as that user."""
    if spec.kind != LITELLM:
        return None

    async def _setup():
        await ensure_user(host, spec.identity)
        ensure_directories(host, spec)

    return _setup


def _check_systemd(dry_run):
    try:
        require("systemctl", hint="a systemd-based Linux host is required")
    except DependencyMissing:
        if not dry_run:
            raise
        logger.warning("systemctl not found (ignored in dry-run)")


def log_summary(report):
    params = report.params
    spec = params.spec
    ident = spec.identity
    outcome = report.outcome
    status = "dry-run (not deployed)" if params.dry_run else outcome.state.value

    logger.info("")
    logger.info(f"Service: {ident.unit_name} ({spec.kind})")
    logger.info(f"  Status:    {status}")
    logger.info(f"  Endpoint:  http://127.0.0.1:{ident.port}")
    logger.info(f"  Binary:    {report.tool_path}")
    logger.info(f"  Unit:      {ident.unit_path}")
    logger.info(f"  Written:   {len(outcome.written)} file(s), unchanged: {len(outcome.unchanged)}")
    if outcome.restarted:
        logger.info("  Restarted: yes (configuration changed)")
    if spec.profile is not None:
        logger.info(f"  Base model:    {spec.profile.base_model}")
        logger.info(f"  Derived model: {spec.profile.name} ({outcome.profile_action or 'skipped'})")
        logger.info(f"  Modelfile:     {spec.profile.modelfile_path}")
        logger.info(f"  num_ctx:       {spec.runtime.num_ctx}")
    if spec.warmup:
        logger.info(f"  Warm-up unit:  {spec.warmup_unit_path}")

    if report.probes:
        passed = sum(1 for p in report.probes if p.ok)
        logger.info(f"  Smoke test: {passed}/{len(report.probes)} probe(s) passed")
        for failure in report.probe_failures:
            logger.warning(f"  Smoke test failure: {failure}")
    logger.info("")
    logger.info(f"View logs with:  journalctl -u {ident.name} -f")


async def run_deploy(params, host, transport=None, sleep=None):
    """Shared deploy flow for every service kind.

    Args:
        params: DeployParams
        host: LocalHost (or a stand-in with the same interface)
        transport: optional httpx transport for the smoke probes
        sleep: optional sleep coroutine for the smoke probes

    Returns:
        DeployReport. Smoke probe failures are recorded, never raised.
    """
    spec = params.spec

    with service_lock(host, spec.identity.name):
        # Step 1: dependencies
        tool_path = await ensure(
            installer_for(spec),
            spec.install_deps,
            host.run_cmd,
            dry_run=params.dry_run,
            before_install=_owner_setup(spec, host),
        )

        # Step 2: render all artifacts before any file is written
        artifacts = render(spec, tool_path)

        # Step 3: converge
        outcome = await reconcile(params, artifacts, host, tool_path)

    # Step 4: smoke test
    probes = []
    if params.smoke and not params.dry_run:
        kwargs = {"transport": transport}
        if sleep is not None:
            kwargs["sleep"] = sleep
        probes = await verify(probes_for(spec), warmup_delay=params.smoke_delay, **kwargs)

    report = DeployReport(params=params, tool_path=tool_path, outcome=outcome, probes=probes)
    log_summary(report)
    return report


async def deploy(params: DeployParams) -> DeployReport:
    """Deploy one service on this host. Single entry point."""
    check_privileges(params.dry_run)
    _check_systemd(params.dry_run)
    host = LocalHost(root=params.root, dry_run=params.dry_run)
    return await run_deploy(params, host)
