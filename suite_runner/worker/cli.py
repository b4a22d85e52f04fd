"""Entry point of a worker process.

Runs the given tests one after another and writes one JSON report line per
finished test to stdout. Logging goes to stderr.
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from typing import Any, TextIO

from suite_runner.executors.base import ExecutionOptions
from suite_runner.executors.loading import load_executor_manifest
from suite_runner.models.descriptor import StepResult, TestReport
from suite_runner.models.run import DEFAULT_REPLAY_SPEED

log = logging.getLogger(__name__)


def parse_test_names(tests: str) -> Sequence[str]:
    """Parse the comma-joined test name list."""
    return tuple(name.strip() for name in tests.split(",") if name.strip())


async def run_worker(
    test_names: Sequence[str],
    options: ExecutionOptions,
    executor_key: str,
    executor_config: Mapping[str, Any],
    out: TextIO,
) -> int:
    """Run tests with the given executor, reporting each one to ``out``."""
    manifest = load_executor_manifest(executor_key)

    async with manifest.open(executor_config) as executor:
        for name in test_names:
            try:
                report = await executor.run_test(name, options)
            except Exception as e:
                log.error("Test %s failed to execute: %s", name, e, exc_info=e)
                report = TestReport(
                    name=name,
                    status="error",
                    results=[StepResult(name=name, status="error", message=str(e))],
                )
            out.write(report.model_dump_json() + "\n")
            out.flush()

    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run a subset of tests")
    parser.add_argument(
        "--tests",
        required=True,
        help="Comma-separated names of the tests to run",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=DEFAULT_REPLAY_SPEED,
        help="Replay speed of recorded interactions",
    )
    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Run tests in visible mode",
    )
    parser.add_argument(
        "--executor",
        default="command",
        help="Executor key (command)",
    )
    parser.add_argument(
        "--executor-config",
        default="{}",
        help="JSON configuration for the executor",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run_worker(
            test_names=parse_test_names(args.tests),
            options=ExecutionOptions(
                headless=not args.no_headless, replay_speed=args.speed
            ),
            executor_key=args.executor,
            executor_config=json.loads(args.executor_config),
            out=sys.stdout,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
