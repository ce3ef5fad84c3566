"""Tests for the per-service advisory lock."""

import pytest

from hostdock.errors import ReconcileError
from hostdock.provisioning.host import LocalHost
from hostdock.provisioning.lock import service_lock


def test_lock_path_below_root(tmp_path):
    host = LocalHost(root=str(tmp_path), apply_ownership=False)
    with service_lock(host, "ollama") as lock_path:
        assert lock_path == str(tmp_path / "run/lock/hostdock-ollama.lock")


def test_second_run_is_rejected(tmp_path):
    host = LocalHost(root=str(tmp_path), apply_ownership=False)
    with service_lock(host, "ollama"):
        with pytest.raises(ReconcileError) as exc_info:
            with service_lock(host, "ollama"):
                pass
    assert exc_info.value.step == "lock"
    assert "already reconciling" in str(exc_info.value)


def test_lock_released_after_run(tmp_path):
    host = LocalHost(root=str(tmp_path), apply_ownership=False)
    with service_lock(host, "litellm"):
        pass
    with service_lock(host, "litellm"):
        pass


def test_different_services_do_not_conflict(tmp_path):
    host = LocalHost(root=str(tmp_path), apply_ownership=False)
    with service_lock(host, "litellm"), service_lock(host, "ollama"):
        pass


def test_dry_run_takes_no_lock(tmp_path):
    host = LocalHost(root=str(tmp_path), dry_run=True, apply_ownership=False)
    with service_lock(host, "ollama"):
        pass
    assert not (tmp_path / "run").exists()
