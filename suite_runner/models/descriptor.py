"""Models for known tests and the results reported for them."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field

from suite_runner.models.base import Model

StepStatus = Literal["passed", "failed", "error"]
TestStatus = Literal["idle", "pending", "unsettled", "passed", "failed", "error"]

SETTLED_STATUSES: frozenset[TestStatus] = frozenset({"passed", "failed", "error"})


class StepResult(Model):
    """Outcome of one step of a test (a screenshot, an assertion, a command)."""

    name: str = Field(..., description="Step name")
    status: StepStatus = Field(..., description="Step outcome")
    duration: float = Field(default=0.0, description="Step duration in seconds")
    message: str | None = Field(default=None, description="Optional details")


class TestReport(Model):
    """Final outcome of one test, sent by a worker process once per test."""

    __test__ = False

    name: str = Field(..., description="Test name")
    status: StepStatus = Field(..., description="Terminal status of the test")
    results: Sequence[StepResult] = Field(
        default_factory=list, description="Step results in execution order"
    )


class TestDescriptor(Model):
    """A known test and its last-known status."""

    __test__ = False

    name: str = Field(..., description="Unique test name")
    path: str = Field(..., description="Test file path relative to the tests dir")
    status: TestStatus = Field(default="idle", description="Last-known status")
    results: Sequence[StepResult] = Field(
        default_factory=list, description="Results of the last run"
    )
    actions: int = Field(default=0, description="Number of recorded actions")

    @property
    def settled(self) -> bool:
        """Whether a worker has supplied a terminal result."""
        return self.status in SETTLED_STATUSES
