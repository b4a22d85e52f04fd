"""Tests for CLI module."""

import argparse
from pathlib import Path
from unittest.mock import patch

import pytest

from suite_runner.cli import build_config, main


def namespace(**overrides: object) -> argparse.Namespace:
    """Build parsed arguments with defaults."""
    values: dict[str, object] = {
        "host": "127.0.0.1",
        "port": 8383,
        "tests_dir": Path("/suite/tests"),
        "test_pattern": "*.html",
        "results_path": None,
        "actions_dir": None,
        "static_root": None,
        "executor": "command",
        "executor_config": "{}",
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_build_config_defaults_under_tests_dir() -> None:
    """Results and actions default to a directory inside the tests dir."""
    config = build_config(namespace())

    assert config.results_path == Path("/suite/tests/.suite_runner/results.json")
    assert config.actions_dir == Path("/suite/tests/.suite_runner/actions")
    assert config.origin == "http://127.0.0.1:8383"


def test_build_config_parses_executor_config() -> None:
    """Executor configuration is parsed from JSON."""
    config = build_config(
        namespace(
            executor_config='{"command": ["npx", "run-test", "{test}"]}',
            results_path=Path("/tmp/results.json"),
        )
    )

    assert config.executor_config == {"command": ["npx", "run-test", "{test}"]}
    assert config.results_path == Path("/tmp/results.json")


def test_main_runs_app(tmp_path: Path) -> None:
    """Parses arguments and serves the application."""
    argv = ["suite-runner", "--tests-dir", str(tmp_path), "--port", "9000"]

    with (
        patch("sys.argv", argv),
        patch("suite_runner.cli.web.run_app") as run_app,
    ):
        main()

    run_app.assert_called_once()
    assert run_app.call_args.kwargs["port"] == 9000
    assert run_app.call_args.kwargs["host"] == "127.0.0.1"


def test_main_rejects_unknown_executor(tmp_path: Path) -> None:
    """Exits with a usage error for an executor that is not installed."""
    argv = ["suite-runner", "--tests-dir", str(tmp_path), "--executor", "nope"]

    with patch("sys.argv", argv), pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 2
