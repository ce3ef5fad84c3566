"""CLI logging setup: plain %(message)s format, errors and warnings on stderr."""

import logging
import sys

from hostdock.redact import SecretRedactingFilter


class _BelowWarningFilter(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.WARNING


def setup_cli_logging(verbose=False):
    """Configure root logger with plain message format for CLI commands.

    INFO and DEBUG go to stdout, WARNING and above go to stderr. Secret values
    are redacted by every handler.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()

    formatter = logging.Formatter("%(message)s")
    # Handler-level so records propagated from child loggers are redacted too
    redacting = SecretRedactingFilter()

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setFormatter(formatter)
    out_handler.addFilter(_BelowWarningFilter())
    out_handler.addFilter(redacting)
    root.addHandler(out_handler)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    err_handler.setFormatter(formatter)
    err_handler.addFilter(redacting)
    root.addHandler(err_handler)
