"""Deploy library: reconcile, derived profiles, smoke test, orchestration."""

from hostdock.deploy.orchestrate import (
    DeployReport,
    check_privileges,
    deploy,
    run_deploy,
)
from hostdock.deploy.params import DeployParams
from hostdock.deploy.reconcile import (
    ReconcileOutcome,
    ServiceState,
    observe_state,
    reconcile,
)
from hostdock.deploy.smoke import EndpointProbe, ProbeResult, probes_for, verify

__all__ = [
    "DeployParams",
    "DeployReport",
    "EndpointProbe",
    "ProbeResult",
    "ReconcileOutcome",
    "ServiceState",
    "check_privileges",
    "deploy",
    "observe_state",
    "probes_for",
    "reconcile",
    "run_deploy",
    "verify",
]
