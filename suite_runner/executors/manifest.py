"""What an installed executor exposes to worker processes."""

from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from suite_runner.executors.base import TestExecutor

type ExecutorFactory[ConfigT] = Callable[
    [ConfigT], AbstractAsyncContextManager[TestExecutor]
]


@dataclass(frozen=True, kw_only=True)
class ExecutorManifest[ConfigT: BaseModel]:
    """Entry point object of an executor, registered under its key.

    A worker receives the executor key and its configuration as JSON on the
    command line. It looks the manifest up by key, validates the
    configuration with ``config_cls`` and opens the executor with
    ``executor_factory`` for the duration of its tests.
    """

    config_cls: type[ConfigT]
    executor_factory: ExecutorFactory[ConfigT]

    def parse_config(self, raw: Mapping[str, Any]) -> ConfigT:
        """Validate the configuration sent to a worker."""
        return self.config_cls.model_validate(raw)

    def open(
        self, raw: Mapping[str, Any]
    ) -> AbstractAsyncContextManager[TestExecutor]:
        """Create the executor from its raw configuration."""
        return self.executor_factory(self.parse_config(raw))
