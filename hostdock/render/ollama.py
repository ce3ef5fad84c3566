"""Ollama artifacts: env file, Modelfile, server unit, warm-up unit, sysctl drop-in."""

from hostdock.render.artifact import public_artifact, secret_artifact
from hostdock.render.template import MODELFILE, SYSTEMD, check_value, env_line

DEFAULT_OLLAMA_BIN = "/usr/local/bin/ollama"


def ollama_host(spec):
    """Bind address. The server listens on localhost only."""
    return f"127.0.0.1:{spec.identity.port}"


def generate_env_file(spec):
    rt = spec.runtime
    lines = [
        env_line("HOME", spec.identity.app_dir, "--app-dir"),
        # CPU performance tuning
        env_line("OMP_NUM_THREADS", rt.threads, "--threads"),
        env_line("GGML_NUM_THREADS", rt.threads, "--threads"),
        env_line("OLLAMA_NUM_THREADS", rt.threads, "--threads"),
        env_line("OLLAMA_HOST", ollama_host(spec), "--port"),
        # Use huge pages if enabled in the system
        env_line("GGML_USE_HUGEPAGES", 1),
    ]
    if rt.keep_alive:
        lines.append(env_line("OLLAMA_KEEP_ALIVE", rt.keep_alive, "--keep-alive"))
    return "\n".join(lines) + "\n"


def generate_modelfile(spec):
    """FROM <base> followed by one PARAMETER line per override, in order."""
    lines = [f"FROM {check_value(spec.profile.base_model, '--base-model', MODELFILE)}"]
    for key, value in spec.runtime.modelfile_parameters():
        lines.append(f"PARAMETER {key} {check_value(value, '--' + key.replace('_', '-'), MODELFILE)}")
    return "\n".join(lines) + "\n"


def generate_unit(spec, ollama_bin=DEFAULT_OLLAMA_BIN):
    ident = spec.identity
    user = check_value(ident.user, "--service-user", SYSTEMD)
    app_dir = check_value(ident.app_dir, "--app-dir", SYSTEMD)
    env_file = check_value(ident.env_path, "--config-dir", SYSTEMD)
    binary = check_value(ollama_bin, "ollama binary", SYSTEMD)

    return f"""[Unit]
Description=Ollama LLM Server
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
User={user}
Group={user}
EnvironmentFile={env_file}
ExecStart={binary} serve
Restart=always
RestartSec=3
LimitNOFILE=1048576
LimitNPROC=1048576
NoNewPrivileges=true
PrivateTmp=true
ProtectSystem=full
ProtectHome=true
ReadWritePaths={app_dir}

[Install]
WantedBy=multi-user.target
"""


def generate_warmup_unit(spec, ollama_bin=DEFAULT_OLLAMA_BIN):
    """Oneshot unit that loads the derived profile once after the server starts."""
    main_unit = check_value(spec.identity.unit_name, "--service-name", SYSTEMD)
    profile = check_value(spec.profile.name, "--profile-name", SYSTEMD)
    env_file = check_value(spec.identity.env_path, "--config-dir", SYSTEMD)
    binary = check_value(ollama_bin, "ollama binary", SYSTEMD)

    return f"""[Unit]
Description=Warm up Ollama model ({profile})
After={main_unit}
Requires={main_unit}

[Service]
Type=oneshot
EnvironmentFile={env_file}
ExecStartPre=/bin/sleep 3
ExecStart=-{binary} run {profile} "warm up"
TimeoutSec=1200

[Install]
WantedBy=multi-user.target
"""


def generate_sysctl_conf(spec):
    return f"vm.nr_hugepages={check_value(spec.runtime.hugepages, '--hugepages', SYSTEMD)}\n"


def render_ollama(spec, ollama_bin=DEFAULT_OLLAMA_BIN):
    """All artifacts for an Ollama deployment, secrets first.

    The Modelfile is the derived-profile descriptor read by ``ollama create``.
    """
    artifacts = [
        secret_artifact(spec.identity.env_path, generate_env_file(spec)),
        public_artifact(spec.profile.modelfile_path, generate_modelfile(spec), restarts_service=False),
        public_artifact(spec.identity.unit_path, generate_unit(spec, ollama_bin)),
    ]
    if spec.warmup:
        artifacts.append(public_artifact(spec.warmup_unit_path, generate_warmup_unit(spec, ollama_bin), restarts_service=False))
    if spec.runtime.hugepages > 0:
        artifacts.append(public_artifact(spec.sysctl_path, generate_sysctl_conf(spec), restarts_service=False))
    return artifacts
