"""Advisory per-service lock so two runs never interleave writes."""

import contextlib
import fcntl
import logging
import os

from hostdock.errors import ReconcileError

logger = logging.getLogger(__name__)

LOCK_DIR = "/run/lock"


@contextlib.contextmanager
def service_lock(host, service_name):
    """Hold an exclusive non-blocking flock on /run/lock/hostdock-<name>.lock.

    Raises:
        ReconcileError: another run already holds the lock
    """
    lock_path = host.path(f"{LOCK_DIR}/hostdock-{service_name}.lock")
    if host.dry_run:
        logger.info(f"[dry-run] lock {lock_path}")
        yield lock_path
        return

    os.makedirs(os.path.dirname(lock_path), exist_ok=True)
    fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            raise ReconcileError(
                "lock",
                f"another run is already reconciling '{service_name}' ({lock_path})",
                hint="wait for the other run to finish",
            ) from None
        yield lock_path
    finally:
        os.close(fd)
