"""Value checks for substitution into generated artifacts.

Each artifact syntax has its own set of characters that would change the
meaning of the file if substituted raw. Values containing them are rejected
rather than escaped. Error messages name the field and never echo the value.
"""

import math
import re

from hostdock.errors import RenderError

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

# Characters that break each target syntax, beyond control characters.
ENV_FILE = ("environment file", '"\\$`')
YAML = ("YAML config", "\"'")
SYSTEMD = ("unit file", "\"'\\%; \t")
MODELFILE = ("Modelfile", "\"' \t")


def check_value(value, field, syntax):
    """Return *value* as text if it is safe for *syntax*, else raise RenderError.

    Args:
        value: str, int or float to substitute
        field: name of the setting, used in the error message
        syntax: one of ENV_FILE, YAML, SYSTEMD, MODELFILE
    """
    label, forbidden = syntax
    if isinstance(value, bool):
        raise RenderError(f"{field}: boolean is not a valid {label} value")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise RenderError(f"{field}: non-finite number {value!r} in {label}")
        return repr(value)
    if not isinstance(value, str):
        raise RenderError(f"{field}: unsupported value type {type(value).__name__} for {label}")
    if not value:
        raise RenderError(f"{field}: empty value in {label}")
    if _CONTROL_RE.search(value):
        raise RenderError(f"{field}: control character or newline not allowed in {label}")
    bad = sorted({c for c in value if c in forbidden})
    if bad:
        shown = ", ".join(repr(c) for c in bad)
        raise RenderError(f"{field}: character(s) {shown} not allowed in {label}")
    if value != value.strip():
        raise RenderError(f"{field}: leading or trailing whitespace not allowed in {label}")
    return value


def env_line(key, value, field=None):
    """Render one ``KEY="value"`` line for a systemd EnvironmentFile."""
    return f'{key}="{check_value(value, field or key, ENV_FILE)}"'
