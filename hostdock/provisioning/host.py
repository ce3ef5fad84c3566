"""Local host: filesystem writes under a root prefix plus command execution."""

import contextlib
import grp
import logging
import os
import pwd
import tempfile

from hostdock.errors import RenderError
from hostdock.provisioning.shell import make_run_cmd

logger = logging.getLogger(__name__)


def _ids(owner, group):
    try:
        uid = pwd.getpwnam(owner).pw_uid
        gid = grp.getgrnam(group).gr_gid
    except KeyError:
        raise LookupError(f"Unknown user or group {owner}:{group}") from None
    return uid, gid


class LocalHost:
    """The machine being provisioned.

    All paths are absolute host paths; they are resolved below ``root`` so a
    run can be staged into a scratch directory. Ownership changes are only
    applied when running as root unless ``apply_ownership`` says otherwise.
    """

    def __init__(self, run_cmd=None, root="/", dry_run=False, apply_ownership=None):
        self.root = root
        self.dry_run = dry_run
        self.run_cmd = run_cmd or make_run_cmd(dry_run=dry_run)
        self.apply_ownership = os.geteuid() == 0 if apply_ownership is None else apply_ownership

    def path(self, host_path):
        """Map an absolute host path below the root prefix."""
        return os.path.join(self.root, host_path.lstrip("/"))

    def exists(self, host_path):
        return os.path.exists(self.path(host_path))

    def _is_current(self, full_path, artifact):
        try:
            st = os.stat(full_path)
            with open(full_path, encoding="utf-8") as f:
                current = f.read()
        except (OSError, UnicodeDecodeError):
            return False
        if current != artifact.content or (st.st_mode & 0o7777) != artifact.mode:
            return False
        if self.apply_ownership:
            uid, gid = _ids(artifact.owner, artifact.group)
            return (st.st_uid, st.st_gid) == (uid, gid)
        return True

    def write_artifact(self, artifact):
        """Atomically write *artifact*. Returns True if the file changed.

        The temp file gets its final mode and owner before it is renamed into
        place, so the artifact is never visible half-written or with loose
        permissions.

        Raises:
            RenderError: the file could not be written
            LookupError: the artifact owner or group does not exist
        """
        full_path = self.path(artifact.path)
        if self.dry_run:
            logger.info(f"[dry-run] write {full_path} (mode {artifact.mode:o}, {artifact.owner}:{artifact.group})")
            return True

        if self._is_current(full_path, artifact):
            logger.debug(f"Unchanged: {full_path}")
            return False

        directory = os.path.dirname(full_path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{os.path.basename(full_path)}.", suffix=".tmp")
        except OSError as e:
            raise RenderError(f"Cannot write {full_path}: {e}") from e

        try:
            os.fchmod(fd, artifact.mode)
            if self.apply_ownership:
                os.fchown(fd, *_ids(artifact.owner, artifact.group))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(artifact.content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, full_path)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise RenderError(f"Cannot write {full_path}: {e}") from e
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise

        logger.info(f"Wrote {full_path}")
        return True

    def ensure_dir(self, host_path, owner="root", group="root", mode=0o755, recursive_owner=False):
        """Create a directory if needed and set its mode and owner. Returns True if created.

        Raises OSError, or LookupError for an unknown owner or group.
        """
        full_path = self.path(host_path)
        if self.dry_run:
            logger.info(f"[dry-run] mkdir -p {full_path} (mode {mode:o}, {owner}:{group})")
            return False

        created = not os.path.isdir(full_path)
        os.makedirs(full_path, exist_ok=True)
        os.chmod(full_path, mode)
        if self.apply_ownership:
            uid, gid = _ids(owner, group)
            os.chown(full_path, uid, gid)
            if recursive_owner:
                for dirpath, dirnames, filenames in os.walk(full_path):
                    for name in dirnames + filenames:
                        os.chown(os.path.join(dirpath, name), uid, gid, follow_symlinks=False)
        if created:
            logger.info(f"Created {full_path}")
        return created
