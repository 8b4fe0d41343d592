from __future__ import annotations

import logging
import re
from pathlib import Path

from examplecheck.config import RunnerConfig

from .inputs import resolve_input
from .types import DiscoveryError, Task

logger = logging.getLogger(__name__)


def find_chapters(root: Path, pattern: str) -> list[str]:
    regex = re.compile(pattern)
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        raise DiscoveryError(f"Can't read root directory {root}: {exc}") from exc

    return sorted(
        entry.name for entry in entries if entry.is_dir() and regex.search(entry.name)
    )


def find_code_files(directory: Path, config: RunnerConfig) -> list[Path]:
    files: list[Path] = []

    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        # Not every chapter ships every folder; skip and keep going.
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        return files

    for entry in entries:
        if config.is_excluded(entry.name):
            continue

        # Directory symlinks can loop back up the tree
        if entry.is_dir() and not entry.is_symlink():
            files.extend(find_code_files(entry, config))
        elif entry.is_file() and entry.name.endswith(config.extension):
            files.append(entry)

    return files


def discover_tasks(root: str | Path, config: RunnerConfig) -> list[Task]:
    pure_root = Path(root).expanduser().resolve()

    if not pure_root.exists():
        raise DiscoveryError(f"Root directory not found: {pure_root}")

    if not pure_root.is_dir():
        raise DiscoveryError(f"Root path is not a directory: {pure_root}")

    paths: list[Path] = []
    if config.chapter_pattern is None:
        paths.extend(find_code_files(pure_root, config))
    else:
        chapters = find_chapters(pure_root, config.chapter_pattern)
        logger.debug("Found %d chapters: %s", len(chapters), ", ".join(chapters))
        for chapter in chapters:
            for subdir in config.chapter_subdirs:
                paths.extend(find_code_files(pure_root / chapter / subdir, config))

    return [
        Task(path, resolve_input(path, config.interactive_inputs)) for path in paths
    ]
