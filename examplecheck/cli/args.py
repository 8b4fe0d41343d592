from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="examplecheck")

    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (default: examplecheck.yml/.yaml/.toml/.json in the root, if present)",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Course root containing the chapter directories",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run every example and report")
    run.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum number of examples running at once",
    )
    run.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Per-example timeout in milliseconds",
    )
    run.add_argument(
        "--sequential",
        action="store_true",
        help="Run one example at a time (same as --concurrency 1)",
    )

    # list
    subparsers.add_parser("list", help="List discovered examples")

    return parser
