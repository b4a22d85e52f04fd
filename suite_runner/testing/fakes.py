"""In-process stand-ins for workers and observers."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from suite_runner.models.descriptor import StepResult, StepStatus, TestReport
from suite_runner.models.run import RunOptions
from suite_runner.worker.handle import (
    EventSink,
    TestFinished,
    WorkerEvent,
    WorkerExited,
)


@dataclass(kw_only=True)
class FakeWorker:
    """Worker whose events are queued by the test, or replayed on start."""

    slot: int
    tests: Sequence[str]
    channel: EventSink
    script: Sequence[WorkerEvent] = ()
    starts: bool = True
    options: RunOptions | None = None
    kill_count: int = 0

    async def start(self, options: RunOptions) -> bool:
        """Record the options and replay the scripted events."""
        self.options = options
        if not self.starts or self.kill_count:
            return False
        for event in self.script:
            self.channel.put_nowait(event)
        return True

    def kill(self) -> None:
        """Count termination requests."""
        self.kill_count += 1

    def finish(self, name: str, status: StepStatus = "passed") -> None:
        """Report one test as finished."""
        self.channel.put_nowait(finished(self.slot, name, status))

    def exit(self, returncode: int = 0) -> None:
        """Report the worker as exited."""
        self.channel.put_nowait(WorkerExited(slot=self.slot, returncode=returncode))


def finished(slot: int, name: str, status: StepStatus = "passed") -> TestFinished:
    """Build the event of a finished test with a single step."""
    return TestFinished(
        slot=slot,
        report=TestReport(
            name=name,
            status=status,
            results=[StepResult(name=name, status=status, duration=0.1)],
        ),
    )


@dataclass(kw_only=True)
class FakeWorkerFactory:
    """Creates fake workers, optionally with a script per slot."""

    scripts: Mapping[int, Sequence[WorkerEvent]] = field(default_factory=dict)
    starts: bool = True
    workers: list[FakeWorker] = field(default_factory=list)

    def __call__(
        self, slot: int, tests: Sequence[str], channel: EventSink
    ) -> FakeWorker:
        """Create the worker of a slot."""
        worker = FakeWorker(
            slot=slot,
            tests=tests,
            channel=channel,
            script=self.scripts.get(slot, ()),
            starts=self.starts,
        )
        self.workers.append(worker)
        return worker


@dataclass(kw_only=True)
class RecordingObserver:
    """Observer keeping every emitted event."""

    events: list[tuple[str, Mapping[str, Any]]] = field(default_factory=list)

    async def emit(self, event: str, data: Mapping[str, Any] | None = None) -> None:
        """Record one event."""
        self.events.append((event, dict(data or {})))

    def statuses(self, index: int) -> Mapping[str, str]:
        """Test statuses of the snapshot at ``index``."""
        _, data = self.events[index]
        return {test["name"]: test["status"] for test in data["tests"]}
