"""CLI entry point of the dashboard server."""

import argparse
import json
import logging
import sys
from pathlib import Path

from aiohttp import web

from suite_runner.config import ServerConfig
from suite_runner.executors.loading import available_executors
from suite_runner.server import create_app


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Build the server configuration from parsed arguments."""
    tests_dir: Path = args.tests_dir
    return ServerConfig(
        host=args.host,
        port=args.port,
        tests_dir=tests_dir,
        test_pattern=args.test_pattern,
        results_path=args.results_path or tests_dir / ".suite_runner" / "results.json",
        actions_dir=args.actions_dir or tests_dir / ".suite_runner" / "actions",
        static_root=args.static_root,
        executor=args.executor,
        executor_config=json.loads(args.executor_config),
    )


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Serve a dashboard running tests in parallel worker processes"
    )
    parser.add_argument("--host", default="127.0.0.1", help="Address to bind")
    parser.add_argument("--port", type=int, default=8383, help="Port to bind")
    parser.add_argument(
        "--tests-dir",
        type=Path,
        required=True,
        help="Directory containing the test files",
    )
    parser.add_argument(
        "--test-pattern",
        default="*.html",
        help="Glob pattern of test files within the tests directory",
    )
    parser.add_argument(
        "--results-path",
        type=Path,
        default=None,
        help="JSON file persisting test results",
    )
    parser.add_argument(
        "--actions-dir",
        type=Path,
        default=None,
        help="Directory of recorded interaction actions",
    )
    parser.add_argument(
        "--static-root",
        type=Path,
        default=None,
        help="Directory served as static files (dashboard and recorder pages)",
    )
    parser.add_argument(
        "--executor",
        default="command",
        help="Executor key used by workers (command)",
    )
    parser.add_argument(
        "--executor-config",
        default="{}",
        help="JSON configuration for the executor",
    )

    args = parser.parse_args()
    executors = available_executors()
    if args.executor not in executors:
        parser.error(
            f"unknown executor '{args.executor}', available: {', '.join(executors)}"
        )

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    log = logging.getLogger("suite_runner")

    config = build_config(args)
    log.info("Dashboard: %s/client", config.origin)
    log.info("Interaction Recorder: %s/recorder", config.origin)

    web.run_app(create_app(config), host=config.host, port=config.port, print=None)


if __name__ == "__main__":  # pragma: no cover
    main()
