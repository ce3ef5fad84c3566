"""Deployment spec: typed parameters, settings loading and validation."""

from hostdock.spec.load import (
    DEFAULTS,
    REQUIRED,
    build_spec,
    flag_name,
    load_config_file,
    merge_settings,
    missing_required,
)
from hostdock.spec.types import (
    LITELLM,
    OLLAMA,
    SERVICE_KINDS,
    AzureBackend,
    DeploymentSpec,
    ProfileSpec,
    RuntimeParams,
    ServiceIdentity,
)

__all__ = [
    "DEFAULTS",
    "LITELLM",
    "OLLAMA",
    "REQUIRED",
    "SERVICE_KINDS",
    "AzureBackend",
    "DeploymentSpec",
    "ProfileSpec",
    "RuntimeParams",
    "ServiceIdentity",
    "build_spec",
    "flag_name",
    "load_config_file",
    "merge_settings",
    "missing_required",
]
