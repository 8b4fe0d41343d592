from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from examplecheck.config import (
    ConfigError,
    RunnerConfig,
    find_config,
    load_config,
    validate_config,
)
from examplecheck.discovery import DiscoveryError, discover_tasks, find_chapters
from examplecheck.executor import run_tasks
from examplecheck.report import ConsoleReporter, exit_code, relative_path

from .args import build_parser

logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _setup_logging(args.verbose)

        match args.command:
            case "run":
                return cmd_run(args)
            case "list":
                return cmd_list(args)
            case _:
                return 2

    except (ConfigError, DiscoveryError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        return 130


def main() -> None:
    raise SystemExit(run_cli())


def cmd_run(args: argparse.Namespace) -> int:
    config = _config_with_overrides(args)
    root = Path(args.root).expanduser().resolve()
    tasks = discover_tasks(root, config)
    chapters = (
        find_chapters(root, config.chapter_pattern)
        if config.chapter_pattern is not None
        else None
    )

    reporter = ConsoleReporter(root, config.excerpt_lines)
    reporter.run_started(tasks, config.concurrency, chapters)
    rr = run_tasks(tasks, config, reporter)
    reporter.report(rr)

    return exit_code(rr)


def cmd_list(args: argparse.Namespace) -> int:
    config = _load(args)
    root = Path(args.root).expanduser().resolve()
    for task in discover_tasks(root, config):
        line = relative_path(task.path, root)
        print(f"{line} (interactive)" if task.interactive else line)
    return 0


def _load(args: argparse.Namespace) -> RunnerConfig:
    path = args.config or find_config(args.root)
    if path is None:
        logger.debug("No config file found in %s, using defaults", args.root)
        return RunnerConfig()

    logger.debug("Loading config from %s", path)
    return load_config(path)


def _config_with_overrides(args: argparse.Namespace) -> RunnerConfig:
    config = _load(args)
    overrides = {}

    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.sequential:
        overrides["concurrency"] = 1
    if args.timeout is not None:
        overrides["timeout_ms"] = args.timeout

    if overrides:
        config = dataclasses.replace(config, **overrides)
        validate_config(config)

    return config


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
