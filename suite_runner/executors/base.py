"""Abstract base class for test executors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from suite_runner.models.descriptor import TestReport


@dataclass(frozen=True, kw_only=True)
class ExecutionOptions:
    """Options a worker passes to its executor for every test."""

    headless: bool = True
    replay_speed: float = 5


class TestExecutor(ABC):
    """Executes a single test inside a worker process.

    How a test is executed is entirely up to the executor; the worker only
    forwards the returned report to the supervisor.
    """

    __test__ = False

    @abstractmethod
    async def run_test(self, name: str, options: ExecutionOptions) -> TestReport:
        """Run one test and return its final report.

        Args:
            name: Test name as known by the results store
            options: Execution options of the run

        Returns:
            Report with a terminal status

        """
