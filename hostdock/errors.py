"""Typed deployment errors. Every fatal kind carries a one-line remediation hint."""


class DeployError(Exception):
    """Base class for all errors that abort a deployment run."""

    hint = ""

    def __init__(self, message, hint=None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class ValidationError(DeployError):
    """Bad or missing input. Raised before any side effect."""

    hint = "check the flag values (see --help)"


class PrivilegeError(DeployError):
    hint = "run as root (e.g. with sudo) or pass --dry-run"


class DependencyMissing(DeployError):
    """A required external tool is not on the host and installing it was not requested."""


class InstallationFailed(DeployError):
    """The vendor install procedure ran but the tool still cannot be resolved."""

    hint = "install the tool manually and rerun"


class RenderError(DeployError):
    """An artifact could not be rendered or written."""

    hint = "remove quotes, newlines and control characters from the offending value"


class ReconcileError(DeployError):
    """A reconciliation step failed. ``step`` names the step."""

    hint = "fix the reported problem and rerun; generated files are regenerated idempotently"

    def __init__(self, step, message, hint=None):
        super().__init__(f"[{step}] {message}", hint=hint)
        self.step = step


class ProbeFailure(DeployError):
    """A smoke probe did not succeed. Advisory only, never aborts a run."""

    def __init__(self, probe, message):
        super().__init__(f"{probe}: {message}")
        self.probe = probe
