"""Loading of executors from entry points."""

from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from suite_runner.executors.manifest import ExecutorManifest

ENTRY_POINT_GROUP = "suite_runner.executors"


class ExecutorNotFoundError(Exception):
    """Raised when an executor is not found."""


def available_executors() -> Sequence[str]:
    """Keys of every installed executor, sorted."""
    return sorted(entry.name for entry in entry_points(group=ENTRY_POINT_GROUP))


def load_executor_manifest(key: str) -> ExecutorManifest[Any]:
    """Load an executor manifest by key.

    Args:
        key: The executor key as registered in pyproject.toml (e.g., "command")

    Raises:
        ExecutorNotFoundError: If no executor with the given key is installed

    """
    for entry in entry_points(group=ENTRY_POINT_GROUP, name=key):
        manifest: ExecutorManifest[Any] = entry.load()
        return manifest

    raise ExecutorNotFoundError(
        f"Executor '{key}' not found. "
        f"Available executors: {', '.join(available_executors())}"
    )
