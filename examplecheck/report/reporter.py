from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from examplecheck.discovery import Task
from examplecheck.executor import RunResult, TaskResult

RULE = "=" * 80


@dataclass(frozen=True)
class RunSummary:
    total: int
    passed: int
    failed: int
    success_rate: float
    duration_ms: int


def summarize(run: RunResult) -> RunSummary:
    total = len(run.results)
    passed = sum(1 for result in run.results if result.success)
    failed = total - passed
    # Nothing ran, nothing failed
    success_rate = 100.0 if total == 0 else passed / total * 100
    return RunSummary(total, passed, failed, success_rate, run.duration_ms)


def exit_code(run: RunResult) -> int:
    return 1 if run.failed else 0


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def error_excerpt(error: str | None, lines: int) -> list[str]:
    if not error:
        return []
    return error.strip("\n").split("\n")[:lines]


class ConsoleReporter:
    def __init__(self, root: str | Path, excerpt_lines: int = 3, stream: TextIO | None = None):
        self.root = Path(root).expanduser().resolve()
        self.excerpt_lines = excerpt_lines
        self.stream = stream

    def _print(self, line: str = "") -> None:
        print(line, file=self.stream or sys.stdout)

    def run_started(
        self, tasks: list[Task], concurrency: int, chapters: list[str] | None = None
    ) -> None:
        interactive = sum(1 for task in tasks if task.interactive)
        if chapters is not None:
            self._print(f"Found {len(chapters)} chapters: {', '.join(chapters)}")
        self._print(f"Found {len(tasks)} code files")
        if interactive > 0:
            self._print(
                f"{interactive} interactive files will be tested with automated input"
            )
        self._print(f"Running {len(tasks)} examples with concurrency: {concurrency}")
        self._print(RULE)

    def task_started(self, index: int, total: int, task: Task) -> None:
        self._print(f"START [{index + 1}/{total}] {relative_path(task.path, self.root)}")

    def task_finished(self, index: int, total: int, result: TaskResult) -> None:
        rel = relative_path(result.path, self.root)
        if result.success:
            self._print(f"OK [{index + 1}/{total}] {rel} ({result.duration_ms}ms)")
            return

        self._print(f"FAIL [{index + 1}/{total}] {rel} ({result.duration_ms}ms)")
        first = error_excerpt(result.error, 1)
        if first:
            self._print(f"  Error: {first[0]}")

    def report(self, run: RunResult) -> None:
        summary = summarize(run)
        duration_s = summary.duration_ms / 1000
        duration_min = summary.duration_ms / 60000

        self._print(RULE)
        self._print("Test Results:")
        self._print(f"  Total:    {summary.total}")
        self._print(f"  Passed:   {summary.passed}")
        self._print(f"  Failed:   {summary.failed}")
        self._print(f"  Success:  {summary.success_rate:.1f}%")
        self._print(f"  Duration: {duration_s:.1f}s ({duration_min:.1f} minutes)")

        failures = run.failed
        if failures:
            self._print(RULE)
            self._print("Failed Examples:")
            for result in failures:
                self._print(f"  {relative_path(result.path, self.root)}")
                for line in error_excerpt(result.error, self.excerpt_lines):
                    self._print(f"    {line}")

        self._print(RULE)
        if failures:
            self._print("Validation failed.")
        else:
            self._print("All examples validated successfully.")
