"""LiteLLM proxy artifacts: env file, model config and systemd unit."""

import yaml

from hostdock.render.artifact import public_artifact, secret_artifact
from hostdock.render.template import SYSTEMD, YAML, check_value, env_line

# Env var names referenced from the config as os.environ/<NAME>
AZURE_ENV_VARS = ("AZURE_API_BASE", "AZURE_API_KEY", "AZURE_API_VERSION")
MASTER_KEY_VAR = "LITELLM_MASTER_KEY"


def config_path(spec):
    return f"{spec.identity.config_dir}/{spec.identity.name}.yaml"


def venv_bin(spec, tool):
    return f"{spec.identity.app_dir}/.venv/bin/{tool}"


def generate_env_file(spec):
    """Credentials for the proxy process. Loaded by systemd, never world-readable."""
    backend = spec.backend
    lines = [
        env_line("AZURE_API_BASE", backend.api_base, "--azure-api-base"),
        env_line("AZURE_API_KEY", backend.api_key, "--azure-api-key"),
        env_line("AZURE_API_VERSION", backend.api_version, "--azure-api-version"),
    ]
    if backend.master_key:
        lines.append(env_line(MASTER_KEY_VAR, backend.master_key, "--master-key"))
    return "\n".join(lines) + "\n"


def generate_config(spec):
    """Build the LiteLLM config YAML.

    model_list[].model_name is the user-facing alias; litellm_params.model is
    the provider model string. Credentials are referenced by env var name.
    """
    backend = spec.backend
    params = {"model": check_value(backend.deployment, "--deployment", YAML)}
    for var in AZURE_ENV_VARS:
        params[var.removeprefix("AZURE_").lower()] = f"os.environ/{var}"

    config = {
        "model_list": [
            {
                "model_name": check_value(backend.model_name, "--model-name", YAML),
                "litellm_params": params,
            }
        ]
    }
    if backend.master_key:
        config["general_settings"] = {"master_key": f"os.environ/{MASTER_KEY_VAR}"}

    return yaml.safe_dump(config, sort_keys=False, default_flow_style=False)


def generate_unit(spec):
    """Build the systemd unit for the proxy."""
    ident = spec.identity
    name = check_value(ident.name, "--service-name", SYSTEMD)
    user = check_value(ident.user, "--service-user", SYSTEMD)
    app_dir = check_value(ident.app_dir, "--app-dir", SYSTEMD)
    env_file = check_value(ident.env_path, "--config-dir", SYSTEMD)
    cfg = check_value(config_path(spec), "--config-dir", SYSTEMD)
    port = check_value(ident.port, "--port", SYSTEMD)

    return f"""[Unit]
Description=LiteLLM Proxy via uv ({name})
After=network-online.target
Wants=network-online.target

[Service]
User={user}
Group={user}
EnvironmentFile={env_file}
WorkingDirectory={app_dir}
ExecStart={app_dir}/.venv/bin/litellm --config {cfg} --port {port}
Restart=on-failure
RestartSec=2
NoNewPrivileges=yes
PrivateTmp=yes
ProtectSystem=full
ProtectHome=true
LimitNOFILE=65535

[Install]
WantedBy=multi-user.target
"""


def render_litellm(spec):
    """All artifacts for a LiteLLM deployment, secrets first."""
    return [
        secret_artifact(spec.identity.env_path, generate_env_file(spec)),
        public_artifact(config_path(spec), generate_config(spec)),
        public_artifact(spec.identity.unit_path, generate_unit(spec)),
    ]
