from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
import signal
import sys
import time
from typing import Iterable, Sequence

from examplecheck.config import RunnerConfig
from examplecheck.discovery import Task

from .types import TaskResult

logger = logging.getLogger(__name__)

# Upper bound on reaping a killed child
KILL_WAIT_S = 5.0

_POSIX = sys.platform != "win32"


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    return [re.compile(pattern, re.MULTILINE) for pattern in patterns]


def classify(
    returncode: int, stderr: str, patterns: Sequence[re.Pattern[str]]
) -> tuple[bool, str | None]:
    """Decide whether a finished script passed.

    The exit code is authoritative for failures. A zero exit code is still
    downgraded to a failure when stderr matches one of ``patterns``, since
    some scripts print an error and exit cleanly.
    """
    has_error = bool(stderr) and any(p.search(stderr) for p in patterns)

    if returncode == 0 and not has_error:
        return True, None
    if has_error:
        return False, stderr
    return False, stderr or f"Exit code: {returncode}"


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


class Executor:
    def __init__(self, config: RunnerConfig):
        self.config = config
        self.patterns = compile_patterns(config.error_patterns)

    async def execute(self, task: Task) -> TaskResult:
        argv = [*self.config.command, str(task.path)]
        env = {**os.environ, **self.config.env}
        payload = task.input.encode("utf-8") if task.input is not None else None
        timeout_ms = self.config.timeout_ms

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=(
                    asyncio.subprocess.PIPE
                    if payload is not None
                    else asyncio.subprocess.DEVNULL
                ),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=_POSIX,
            )
        except OSError as exc:
            logger.warning("Could not start %s: %s", task.path, exc)
            return TaskResult(task.path, False, _elapsed_ms(start), str(exc))

        logger.debug("Started %s (pid %s)", task.path, proc.pid)

        try:
            out, err = await asyncio.wait_for(
                proc.communicate(payload), timeout=timeout_ms / 1000
            )
        except asyncio.CancelledError:
            await _kill(proc)
            raise
        except TimeoutError:
            await _kill(proc)
            logger.warning("Timed out after %dms: %s", timeout_ms, task.path)
            return TaskResult(
                task.path,
                False,
                _elapsed_ms(start),
                f"Timeout after {timeout_ms}ms",
                proc.returncode,
            )

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        returncode = proc.returncode if proc.returncode is not None else -1
        success, error = classify(returncode, stderr, self.patterns)

        return TaskResult(
            task.path,
            success,
            _elapsed_ms(start),
            error,
            returncode,
            stdout,
            stderr,
        )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and everything it spawned, then reap it.

    Wrappers such as ``npx`` run the script as a grandchild holding the
    same pipes, so the whole session gets the signal.
    """
    with contextlib.suppress(ProcessLookupError):
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()

    try:
        await asyncio.wait_for(proc.wait(), timeout=KILL_WAIT_S)
    except TimeoutError:
        logger.warning("Process %s did not exit after kill", proc.pid)
