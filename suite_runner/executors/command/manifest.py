"""Command executor manifest."""

from suite_runner.executors.command.config import CommandExecutorConfig
from suite_runner.executors.command.executor import CommandExecutor
from suite_runner.executors.manifest import ExecutorManifest

command_manifest = ExecutorManifest(
    config_cls=CommandExecutorConfig,
    executor_factory=CommandExecutor.from_config,
)
