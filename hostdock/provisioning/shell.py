"""Shell command execution helper."""

import asyncio
import logging
import os
import shlex

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600


def format_command(command):
    """Printable form of an argv list or shell string."""
    return command if isinstance(command, str) else shlex.join(command)


def make_run_cmd(dry_run=False):
    """Create a run_cmd callable for local execution.

    The returned coroutine function takes either an argv list (executed
    directly) or a string (executed through /bin/sh) and returns
    (returncode, stdout, stderr).
    """

    async def run_cmd(command, timeout=DEFAULT_TIMEOUT, env=None, log_output=False):
        printable = format_command(command)
        if dry_run:
            logger.info(f"[dry-run] {printable}")
            return 0, "", ""

        logger.debug(f"$ {printable}")
        full_env = {**os.environ, **env} if env else None
        try:
            if isinstance(command, str):
                proc = await asyncio.create_subprocess_shell(
                    command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=full_env,
                )
            else:
                proc = await asyncio.create_subprocess_exec(
                    *command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=full_env,
                )
        except FileNotFoundError:
            logger.error(f"Error: '{command[0]}' not found. Is it installed and on PATH?")
            return 127, "", f"'{command[0]}' not found"

        try:
            if log_output:
                stdout_lines, stderr_lines = [], []

                async def _read_stream(pipe, lines, level):
                    async for raw_line in pipe:
                        line = raw_line.decode(errors="replace").rstrip("\n")
                        logger.log(level, f"  {line}")
                        lines.append(line)

                await asyncio.wait_for(
                    asyncio.gather(
                        _read_stream(proc.stdout, stdout_lines, logging.INFO),
                        _read_stream(proc.stderr, stderr_lines, logging.INFO),
                        proc.wait(),
                    ),
                    timeout=timeout,
                )
                return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)

            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
            stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
            return proc.returncode, stdout, stderr
        except TimeoutError:
            logger.error(f"Command timed out after {timeout}s: {printable}")
            proc.kill()
            await proc.wait()
            return 124, "", f"timed out after {timeout}s"

    return run_cmd
