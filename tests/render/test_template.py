"""Unit tests for value checks used when substituting into generated files."""

import pytest

from hostdock.errors import RenderError
from hostdock.render.artifact import PUBLIC_MODE, SECRET_MODE, RenderedArtifact, secret_artifact
from hostdock.render.template import ENV_FILE, MODELFILE, SYSTEMD, YAML, check_value, env_line


def test_check_value_passes_plain_text():
    assert check_value("azure/Phi-4-mini-instruct", "--deployment", YAML) == "azure/Phi-4-mini-instruct"


def test_check_value_numbers():
    assert check_value(4096, "--num-ctx", MODELFILE) == "4096"
    assert check_value(0.7, "--temperature", MODELFILE) == "0.7"


@pytest.mark.parametrize("syntax", [ENV_FILE, YAML, SYSTEMD, MODELFILE])
@pytest.mark.parametrize("value", ['phi"4', "phi\n4", "phi\r4", "phi\x00", ""])
def test_check_value_rejects_everywhere(syntax, value):
    with pytest.raises(RenderError):
        check_value(value, "--model-name", syntax)


@pytest.mark.parametrize(
    "syntax,value",
    [
        (ENV_FILE, "a$b"),
        (ENV_FILE, "a`b`"),
        (ENV_FILE, "a\\b"),
        (YAML, "it's"),
        (SYSTEMD, "/opt/my app"),
        (SYSTEMD, "/opt/100%"),
        (SYSTEMD, "a;b"),
        (MODELFILE, "llama3 extra"),
    ],
)
def test_check_value_rejects_syntax_specific(syntax, value):
    with pytest.raises(RenderError, match="not allowed"):
        check_value(value, "--field", syntax)


def test_check_value_allows_what_other_syntaxes_reject():
    assert check_value("a$b", "--field", YAML) == "a$b"
    assert check_value("/opt/my app", "--field", ENV_FILE) == "/opt/my app"


def test_check_value_rejects_odd_types():
    with pytest.raises(RenderError, match="boolean"):
        check_value(True, "--warmup", ENV_FILE)
    with pytest.raises(RenderError, match="non-finite"):
        check_value(float("inf"), "--temperature", MODELFILE)
    with pytest.raises(RenderError, match="unsupported"):
        check_value(None, "--keep-alive", MODELFILE)


def test_check_value_error_names_field():
    with pytest.raises(RenderError, match="--model-name"):
        check_value('bad"value', "--model-name", YAML)


@pytest.mark.parametrize("value", ["az-secret-0123456789\nX", 'az-secret-"0123456789', "az-secret-0123456789\x1b"])
def test_check_value_error_does_not_echo_value(value):
    with pytest.raises(RenderError) as exc_info:
        check_value(value, "AZURE_API_KEY", ENV_FILE)
    assert "az-secret" not in str(exc_info.value)
    assert "AZURE_API_KEY" in str(exc_info.value)


def test_env_line():
    assert env_line("OLLAMA_HOST", "127.0.0.1:11434") == 'OLLAMA_HOST="127.0.0.1:11434"'
    assert env_line("OMP_NUM_THREADS", 4) == 'OMP_NUM_THREADS="4"'


# ── RenderedArtifact ────────────────────────────────────────────────


def test_secret_artifact_is_root_owned_and_private():
    artifact = secret_artifact("/etc/litellm/litellm.env", "X=1\n")
    assert artifact.mode == SECRET_MODE
    assert artifact.owner == "root"
    assert artifact.secret


@pytest.mark.parametrize("mode", [0o640, 0o604, PUBLIC_MODE])
def test_secret_artifact_rejects_loose_modes(mode):
    with pytest.raises(RenderError, match="group/world"):
        RenderedArtifact(path="/etc/x.env", content="", mode=mode, secret=True)


def test_secret_artifact_rejects_non_root_owner():
    with pytest.raises(RenderError, match="owned by root"):
        RenderedArtifact(path="/etc/x.env", content="", mode=SECRET_MODE, owner="litellm", secret=True)


def test_artifact_path_must_be_absolute():
    with pytest.raises(RenderError, match="absolute"):
        RenderedArtifact(path="etc/x.yaml", content="")
