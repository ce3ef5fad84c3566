"""Config materializer: render artifacts from a DeploymentSpec."""

from hostdock.errors import RenderError
from hostdock.render.artifact import PUBLIC_MODE, SECRET_MODE, RenderedArtifact
from hostdock.render.litellm import render_litellm
from hostdock.render.ollama import DEFAULT_OLLAMA_BIN, render_ollama
from hostdock.spec.types import LITELLM, OLLAMA


def render(spec, tool_path=None):
    """Render every artifact for *spec*.

    Rendering is pure: nothing is written, so a RenderError leaves the host
    untouched.

    Args:
        spec: DeploymentSpec
        tool_path: resolved runtime binary (used in Ollama units)
    """
    if spec.kind == LITELLM:
        return render_litellm(spec)
    if spec.kind == OLLAMA:
        return render_ollama(spec, tool_path or DEFAULT_OLLAMA_BIN)
    raise RenderError(f"No renderer for service kind '{spec.kind}'")


__all__ = [
    "PUBLIC_MODE",
    "SECRET_MODE",
    "RenderedArtifact",
    "render",
    "render_litellm",
    "render_ollama",
]
