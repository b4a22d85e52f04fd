"""Run supervisor distributing tests across worker processes."""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from suite_runner.models.run import RunOptions, RunOutcome
from suite_runner.observer import Observer, snapshot
from suite_runner.store import ResultsStore
from suite_runner.worker.handle import (
    EventSink,
    TestFinished,
    Worker,
    WorkerEvent,
    WorkerExited,
    WorkerHandle,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunStopped:
    """Wakes the wait of a run that was stopped."""


type RunMessage = WorkerEvent | RunStopped

type WorkerFactory = Callable[[int, Sequence[str], EventSink], Worker]


def spawn_worker_handle(slot: int, tests: Sequence[str], channel: EventSink) -> Worker:
    """Create a handle on a real worker process."""
    return WorkerHandle(slot=slot, tests=tests, channel=channel)


def partition_tests[T](
    tests: Sequence[T], worker_count: int
) -> Sequence[Sequence[T]]:
    """Assign tests to worker slots round-robin (``slot = index % worker_count``).

    Args:
        tests: Tests to distribute
        worker_count: Number of slots, clamped to ``len(tests)``

    Returns:
        One non-empty assignment per slot

    """
    worker_count = min(worker_count, len(tests))
    if worker_count < 1:
        return []
    return [list(tests[slot::worker_count]) for slot in range(worker_count)]


@dataclass(kw_only=True)
class ActiveRun:
    """State of the run currently in progress."""

    generation: int
    pending: Sequence[str]
    channel: asyncio.Queue[RunMessage] = field(default_factory=asyncio.Queue)
    workers: list[Worker] = field(default_factory=list)


@dataclass(kw_only=True)
class RunSupervisor:
    """Runs one set of tests at a time, a new run preempting the current one."""

    store: ResultsStore
    worker_factory: WorkerFactory = spawn_worker_handle

    _run: ActiveRun | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def generation(self) -> int:
        """Generation number of the most recent run."""
        return self._generation

    @property
    def active_run(self) -> ActiveRun | None:
        """The run in progress, if any."""
        return self._run

    def stop(self) -> None:
        """Stop the current run, if any.

        Workers are only asked to terminate. Tests of the run still pending
        become unsettled and late events of the run are ignored.
        """
        run, self._run = self._run, None
        if run is None:
            return

        for worker in run.workers:
            worker.kill()
        unsettled = self.store.mark_unsettled(run.pending)
        run.channel.put_nowait(RunStopped())
        log.info(
            "Stopped run %d (%d test(s) unsettled)", run.generation, len(unsettled)
        )

    async def start_run(
        self,
        test_names: Iterable[str],
        observer: Observer,
        options: RunOptions,
    ) -> RunOutcome:
        """Run the requested tests and wait until every worker exited.

        Args:
            test_names: Names of the tests to run; unknown names are ignored
            observer: Channel receiving progress snapshots
            options: Worker count and execution options

        Returns:
            Outcome of the run, ``stopped`` if it was cancelled or preempted

        """
        self.stop()

        self._generation += 1
        run = ActiveRun(
            generation=self._generation,
            pending=self.store.reset_for_run(test_names),
        )
        self._run = run

        await observer.emit("update", snapshot(self.store.tests))

        assignments = partition_tests(run.pending, max(options.worker_count, 1))
        if not assignments:
            log.info("Run %d has no tests to run", run.generation)
            return self._finish(run, worker_count=0)
        if self._run is not run:
            return self._finish(run, worker_count=0)

        run.workers = [
            self.worker_factory(slot, tests, run.channel)
            for slot, tests in enumerate(assignments)
        ]
        log.info(
            "Run %d: %d test(s) on %d worker(s)",
            run.generation,
            len(run.pending),
            len(run.workers),
        )

        running = 0
        for worker in run.workers:
            if await worker.start(options):
                running += 1

        if running == 0:
            log.error("Run %d: no worker could be started", run.generation)
            return self._finish(run, worker_count=0)

        await self._supervise(run, observer, running)
        # Resolve on a later loop turn than the last exit event.
        await asyncio.sleep(0)
        return self._finish(run, worker_count=len(run.workers))

    async def _supervise(
        self, run: ActiveRun, observer: Observer, running: int
    ) -> None:
        """Consume worker events until every started worker exited."""
        pending = set(run.pending)

        while running > 0:
            match await run.channel.get():
                case RunStopped():
                    return
                case WorkerExited(slot=slot, returncode=returncode):
                    running -= 1
                    log.debug(
                        "Run %d: worker %d exited (code=%s, %d still running)",
                        run.generation,
                        slot,
                        returncode,
                        running,
                    )
                case TestFinished(slot=slot, report=report):
                    if self._run is not run:
                        continue
                    if report.name not in pending:
                        log.warning(
                            "Run %d: worker %d reported unassigned test %s",
                            run.generation,
                            slot,
                            report.name,
                        )
                        continue
                    log.info(
                        "Test completed: test=%s status=%s", report.name, report.status
                    )
                    self.store.merge_results([report])
                    self.store.save()
                    await observer.emit(
                        "update", snapshot(self.store.tests, running=True)
                    )

    def _finish(self, run: ActiveRun, worker_count: int) -> RunOutcome:
        stopped = self._run is not run
        if not stopped:
            self._run = None
        return RunOutcome(
            generation=run.generation,
            test_count=len(run.pending),
            worker_count=worker_count,
            stopped=stopped,
        )
