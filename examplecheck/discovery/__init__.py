from .discover import discover_tasks, find_chapters, find_code_files
from .inputs import resolve_input
from .types import DiscoveryError, Task

__all__ = [
    "discover_tasks",
    "find_chapters",
    "find_code_files",
    "resolve_input",
    "DiscoveryError",
    "Task",
]
