"""Models for run requests, options and outcomes."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from suite_runner.models.base import Model

DEFAULT_REPLAY_SPEED = 5


@dataclass(frozen=True, kw_only=True)
class RunOptions:
    """Options applied to every worker of a run."""

    no_headless: bool = False
    worker_count: int = 1
    replay_speed: float = DEFAULT_REPLAY_SPEED
    executor: str = "command"
    executor_config: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class RunOutcome:
    """What happened to a run once its wait is over."""

    generation: int
    test_count: int
    worker_count: int
    stopped: bool = False


class RunRequest(Model):
    """Run request sent by a dashboard client."""

    tests: Sequence[str] = Field(default_factory=list)
    no_headless: bool = Field(default=False, alias="noHeadless")
    threads: int | None = None
    replay_speed: float | None = Field(default=None, alias="replaySpeed")


class RecorderRequest(Model):
    """Request sent by a recorder client about one test."""

    test_name: str = Field(..., alias="testName")
    actions: Sequence[Any] = Field(default_factory=list)
