"""Tests for executor loading module."""

import pytest

from suite_runner.executors.command import command_manifest
from suite_runner.executors.loading import (
    ExecutorNotFoundError,
    available_executors,
    load_executor_manifest,
)


def test_load_executor_manifest_returns_manifest() -> None:
    """Loads executor manifest by key."""
    manifest = load_executor_manifest("command")

    assert manifest is command_manifest


def test_load_executor_manifest_raises_for_unknown_executor() -> None:
    """Raises ExecutorNotFoundError for unknown executor key."""
    with pytest.raises(ExecutorNotFoundError) as exc_info:
        load_executor_manifest("unknown-executor")

    assert "unknown-executor" in str(exc_info.value)
    assert "Available executors" in str(exc_info.value)


def test_available_executors_lists_builtin_command() -> None:
    """The built-in command executor is always installed."""
    assert "command" in available_executors()
