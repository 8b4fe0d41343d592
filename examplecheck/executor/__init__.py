from .executor import Executor, classify, compile_patterns
from .pool import ProgressListener, WorkerPool, collect_results, run_tasks
from .types import PoolStats, RunResult, TaskResult

__all__ = [
    "Executor",
    "classify",
    "compile_patterns",
    "ProgressListener",
    "WorkerPool",
    "collect_results",
    "run_tasks",
    "PoolStats",
    "RunResult",
    "TaskResult",
]
