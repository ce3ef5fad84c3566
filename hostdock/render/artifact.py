"""RenderedArtifact: one generated file with its ownership and mode."""

from dataclasses import dataclass

from hostdock.errors import RenderError

SECRET_MODE = 0o600
PUBLIC_MODE = 0o644


@dataclass(frozen=True)
class RenderedArtifact:
    """A generated file. Secret-bearing artifacts are root-owned and owner-only."""

    path: str
    content: str
    mode: int = PUBLIC_MODE
    owner: str = "root"
    group: str = "root"
    secret: bool = False
    restarts_service: bool = True  # a change requires restarting the running service

    def __post_init__(self):
        if not self.path.startswith("/"):
            raise RenderError(f"Artifact path must be absolute: {self.path}")
        if self.secret:
            if self.owner != "root":
                raise RenderError(f"Secret artifact {self.path} must be owned by root, not {self.owner}")
            if self.mode & 0o077:
                raise RenderError(f"Secret artifact {self.path} must not be group/world accessible (mode {self.mode:o})")


def secret_artifact(path, content):
    return RenderedArtifact(path=path, content=content, mode=SECRET_MODE, secret=True)


def public_artifact(path, content, restarts_service=True):
    return RenderedArtifact(path=path, content=content, mode=PUBLIC_MODE, restarts_service=restarts_service)
