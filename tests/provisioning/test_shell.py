"""Tests for the local run_cmd helper (real subprocesses)."""

import asyncio

from hostdock.provisioning.shell import format_command, make_run_cmd


def test_format_command():
    assert format_command(["ollama", "run", "cpu-opt", "warm up"]) == "ollama run cpu-opt 'warm up'"
    assert format_command("curl -fsSL x | sh") == "curl -fsSL x | sh"


def test_run_argv():
    run_cmd = make_run_cmd()
    rc, stdout, stderr = asyncio.run(run_cmd(["echo", "hello"]))
    assert rc == 0
    assert stdout == "hello\n"
    assert stderr == ""


def test_run_shell_string_with_env():
    run_cmd = make_run_cmd()
    rc, stdout, _ = asyncio.run(run_cmd('echo "$HOSTDOCK_TEST_VAR"; exit 3', env={"HOSTDOCK_TEST_VAR": "xyz"}))
    assert rc == 3
    assert stdout.strip() == "xyz"


def test_run_missing_binary():
    run_cmd = make_run_cmd()
    rc, _, stderr = asyncio.run(run_cmd(["hostdock-no-such-binary"]))
    assert rc == 127
    assert "not found" in stderr


def test_run_timeout():
    run_cmd = make_run_cmd()
    rc, _, stderr = asyncio.run(run_cmd(["sleep", "5"], timeout=0.2))
    assert rc == 124
    assert "timed out" in stderr


def test_run_log_output(caplog):
    run_cmd = make_run_cmd()
    with caplog.at_level("INFO"):
        rc, stdout, _ = asyncio.run(run_cmd("echo one; echo two", log_output=True))
    assert rc == 0
    assert stdout == "one\ntwo"
    assert "  one" in caplog.text


def test_dry_run_executes_nothing(tmp_path, caplog):
    marker = tmp_path / "marker"
    run_cmd = make_run_cmd(dry_run=True)
    with caplog.at_level("INFO"):
        rc, stdout, stderr = asyncio.run(run_cmd(["touch", str(marker)]))
    assert (rc, stdout, stderr) == (0, "", "")
    assert not marker.exists()
    assert f"[dry-run] touch {marker}" in caplog.text
