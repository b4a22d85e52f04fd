"""Command executor module."""

from suite_runner.executors.command.config import CommandExecutorConfig
from suite_runner.executors.command.executor import CommandExecutor
from suite_runner.executors.command.manifest import command_manifest

__all__ = ["CommandExecutor", "CommandExecutorConfig", "command_manifest"]
