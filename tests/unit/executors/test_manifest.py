"""Tests for executor manifests."""

import pytest
from pydantic import ValidationError

from suite_runner.executors.command import (
    CommandExecutor,
    CommandExecutorConfig,
    command_manifest,
)


def test_parse_config_validates_worker_configuration() -> None:
    """Raw JSON configuration becomes the executor's config model."""
    config = command_manifest.parse_config({"command": ["run", "{test}"], "timeout": 5})

    assert config == CommandExecutorConfig(command=["run", "{test}"], timeout=5)


def test_parse_config_rejects_missing_command() -> None:
    """A command executor cannot be configured without a command."""
    with pytest.raises(ValidationError):
        command_manifest.parse_config({})


async def test_open_creates_executor() -> None:
    """Opens the executor built from the raw configuration."""
    async with command_manifest.open({"command": ["true"]}) as executor:
        assert isinstance(executor, CommandExecutor)
        assert list(executor.config.command) == ["true"]
