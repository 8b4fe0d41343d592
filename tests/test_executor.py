# tests/test_executor.py
from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

from examplecheck.config.types import DEFAULT_ERROR_PATTERNS, RunnerConfig
from examplecheck.discovery import Task
from examplecheck.executor import Executor, classify, compile_patterns


def _script(tmp_path: Path, name: str, code: str) -> Path:
    path = tmp_path / name
    path.write_text(code, encoding="utf-8")
    return path


def _config(timeout_ms: int = 20_000) -> RunnerConfig:
    """Run scripts with the current interpreter instead of npx tsx."""
    return RunnerConfig(command=[sys.executable], extension=".py", timeout_ms=timeout_ms)


PATTERNS = compile_patterns(DEFAULT_ERROR_PATTERNS)


# -------------------------
# Classification
# -------------------------


def test_classify_clean_exit_is_success() -> None:
    assert classify(0, "", PATTERNS) == (True, None)


def test_classify_zero_exit_with_error_marker_fails() -> None:
    assert classify(0, "Error: boom\n", PATTERNS) == (False, "Error: boom\n")


@pytest.mark.parametrize(
    "stderr",
    [
        "TypeError\n",
        "    at main (file.ts:3:7)\n",
        "Unhandled Exception raised\n",
        "an exception happened",
    ],
)
def test_classify_signatures_downgrade_zero_exit(stderr: str) -> None:
    success, error = classify(0, stderr, PATTERNS)
    assert not success
    assert error == stderr


def test_classify_ignores_harmless_stderr() -> None:
    assert classify(0, "warning: deprecated flag\n", PATTERNS) == (True, None)


def test_classify_nonzero_uses_stderr_or_exit_code() -> None:
    assert classify(3, "", PATTERNS) == (False, "Exit code: 3")
    assert classify(3, "boom\n", PATTERNS) == (False, "boom\n")


def test_classify_without_patterns_trusts_exit_code() -> None:
    assert classify(0, "Error: printed but fine\n", []) == (True, None)


# -------------------------
# Real child processes
# -------------------------


@pytest.mark.asyncio
async def test_successful_script(tmp_path: Path) -> None:
    path = _script(tmp_path, "ok.py", "print('hello')\n")

    result = await Executor(_config()).execute(Task(path))

    assert result.success
    assert result.error is None
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"
    assert result.duration_ms >= 0
    assert result.path == path


@pytest.mark.asyncio
async def test_nonzero_exit_fails_with_exit_code_message(tmp_path: Path) -> None:
    path = _script(tmp_path, "bad.py", "raise SystemExit(4)\n")

    result = await Executor(_config()).execute(Task(path))

    assert not result.success
    assert result.returncode == 4
    assert result.error == "Exit code: 4"


@pytest.mark.asyncio
async def test_zero_exit_with_error_text_is_failure(tmp_path: Path) -> None:
    path = _script(
        tmp_path,
        "silent.py",
        "import sys\nsys.stderr.write('Error: request failed\\n')\n",
    )

    result = await Executor(_config()).execute(Task(path))

    assert result.returncode == 0
    assert not result.success
    assert "Error: request failed" in result.error


@pytest.mark.asyncio
async def test_ci_environment_flag_is_set(tmp_path: Path) -> None:
    path = _script(
        tmp_path,
        "env.py",
        "import os\nraise SystemExit(0 if os.environ.get('CI') == 'true' else 2)\n",
    )

    result = await Executor(_config()).execute(Task(path))

    assert result.success


@pytest.mark.asyncio
async def test_canned_input_is_written_and_closed(tmp_path: Path) -> None:
    path = _script(
        tmp_path,
        "chatbot.py",
        "import sys\n"
        "lines = sys.stdin.read().splitlines()\n"
        "raise SystemExit(0 if lines == ['yes', 'no'] else 2)\n",
    )

    result = await Executor(_config()).execute(Task(path, "yes\nno\n"))

    assert result.success


@pytest.mark.asyncio
async def test_reading_stdin_without_input_does_not_block(tmp_path: Path) -> None:
    path = _script(
        tmp_path,
        "reader.py",
        "import sys\nraise SystemExit(0 if sys.stdin.read() == '' else 2)\n",
    )

    result = await Executor(_config(timeout_ms=10_000)).execute(Task(path))

    assert result.success


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX pid probing")
async def test_timeout_kills_process(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid.txt"
    path = _script(
        tmp_path,
        "slow.py",
        "import os, time\n"
        f"open(r'{pid_file}', 'w').write(str(os.getpid()))\n"
        "time.sleep(30)\n",
    )

    start = time.monotonic()
    result = await Executor(_config(timeout_ms=1000)).execute(Task(path))
    elapsed = time.monotonic() - start

    assert not result.success
    assert result.error == "Timeout after 1000ms"
    assert elapsed < 10

    pid = int(pid_file.read_text())
    # killed and reaped: no zombie left behind
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_spawn_failure_reports_error_without_waiting(tmp_path: Path) -> None:
    path = _script(tmp_path, "ok.py", "print('never runs')\n")
    cfg = RunnerConfig(command=[str(tmp_path / "no-such-interpreter")], timeout_ms=30_000)

    start = time.monotonic()
    result = await Executor(cfg).execute(Task(path))
    elapsed = time.monotonic() - start

    assert not result.success
    assert result.error
    assert "no-such-interpreter" in result.error
    assert result.returncode is None
    assert elapsed < 5


def _running(pid: int) -> bool:
    """True while ``pid`` exists and is not a zombie awaiting its reaper."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False

    stat = Path(f"/proc/{pid}/stat")
    if stat.exists():
        state = stat.read_text().rsplit(")", 1)[1].split()[0]
        return state != "Z"
    return True


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX process groups")
async def test_timeout_kills_script_started_through_a_wrapper(tmp_path: Path) -> None:
    # Stands in for npx: the script runs as a grandchild sharing our pipes.
    wrapper = _script(
        tmp_path,
        "wrapper.py",
        "import subprocess, sys\n"
        "child = subprocess.Popen([sys.executable, sys.argv[1]])\n"
        "raise SystemExit(child.wait())\n",
    )
    pid_file = tmp_path / "pid.txt"
    path = _script(
        tmp_path,
        "slow.py",
        "import os, time\n"
        f"open(r'{pid_file}', 'w').write(str(os.getpid()))\n"
        "time.sleep(30)\n",
    )
    cfg = RunnerConfig(command=[sys.executable, str(wrapper)], timeout_ms=1500)

    start = time.monotonic()
    result = await Executor(cfg).execute(Task(path))
    elapsed = time.monotonic() - start

    assert not result.success
    assert result.error == "Timeout after 1500ms"
    assert elapsed < 10

    pid = int(pid_file.read_text())
    deadline = time.monotonic() + 3
    while _running(pid) and time.monotonic() < deadline:
        time.sleep(0.05)
    assert not _running(pid)
