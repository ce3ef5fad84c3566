"""Deploy parameters dataclass."""

from dataclasses import dataclass

from hostdock.spec.types import DeploymentSpec


@dataclass(frozen=True)
class DeployParams:
    """A validated spec plus how to execute it."""

    spec: DeploymentSpec
    root: str = "/"  # filesystem prefix for generated files
    dry_run: bool = False
    smoke: bool = True
    smoke_delay: float = 2.0
