"""Tests for the command executor."""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from suite_runner.executors.base import ExecutionOptions
from suite_runner.executors.command import CommandExecutor, CommandExecutorConfig


def executor_for(code: str, **kwargs: object) -> CommandExecutor:
    """Create an executor running Python code with the test name as argument."""
    config = CommandExecutorConfig(
        command=[sys.executable, "-c", code, "{test}"],
        **kwargs,  # type: ignore[arg-type]
    )
    return CommandExecutor(config=config)


def test_config_requires_a_command() -> None:
    """An empty command is rejected."""
    with pytest.raises(ValidationError):
        CommandExecutorConfig(command=[])


def test_build_command_substitutes_placeholders() -> None:
    """Placeholders are replaced in every argument."""
    executor = CommandExecutor(
        config=CommandExecutorConfig(
            command=["runner", "--test={test}", "--speed", "{speed}", "{headless}"]
        )
    )

    command = executor.build_command(
        "charts/bar", ExecutionOptions(headless=False, replay_speed=2)
    )

    assert command == ["runner", "--test=charts/bar", "--speed", "2", "false"]


async def test_exit_code_zero_passes() -> None:
    """A successful command passes and its output is kept."""
    executor = executor_for("import sys; print('ran', sys.argv[1])")

    report = await executor.run_test("bar", ExecutionOptions())

    assert report.name == "bar"
    assert report.status == "passed"
    assert len(report.results) == 1
    assert report.results[0].status == "passed"
    assert report.results[0].message == "ran bar"
    assert report.results[0].duration >= 0


async def test_non_zero_exit_code_fails() -> None:
    """A failing command fails with its output tail as message."""
    executor = executor_for(
        "import sys; print('x' * 50); sys.exit(3)", output_tail=10
    )

    report = await executor.run_test("bar", ExecutionOptions())

    assert report.status == "failed"
    assert report.results[0].message == "x" * 10


async def test_timeout_is_an_error() -> None:
    """A command exceeding the timeout is killed and reported as error."""
    executor = executor_for("import time; time.sleep(30)", timeout=0.2)

    report = await executor.run_test("bar", ExecutionOptions())

    assert report.status == "error"
    assert "Timed out" in (report.results[0].message or "")


async def test_runs_in_configured_directory(tmp_path: Path) -> None:
    """Commands run in the configured working directory."""
    executor = executor_for("import os; print(os.getcwd())", cwd=tmp_path)

    report = await executor.run_test("bar", ExecutionOptions())

    assert Path(report.results[0].message or "").resolve() == tmp_path.resolve()


async def test_from_config_yields_executor() -> None:
    """The factory yields an executor bound to the configuration."""
    config = CommandExecutorConfig(command=["true"])

    async with CommandExecutor.from_config(config) as executor:
        assert executor.config is config
