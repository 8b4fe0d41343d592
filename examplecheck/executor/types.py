from dataclasses import dataclass, field
from pathlib import Path

from examplecheck.discovery import Task


@dataclass(frozen=True)
class TaskResult:
    path: Path
    success: bool
    duration_ms: int
    error: str | None = None
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""


@dataclass
class PoolStats:
    completed: int = 0
    passed: int = 0
    failed: int = 0

    def record(self, result: TaskResult) -> None:
        if result.success:
            self.passed += 1
        else:
            self.failed += 1
        self.completed += 1


@dataclass(frozen=True)
class RunResult:
    tasks: list[Task]
    results: list[TaskResult]
    duration_ms: int
    stats: PoolStats = field(default_factory=PoolStats)

    @property
    def failed(self) -> list[TaskResult]:
        return [result for result in self.results if not result.success]
