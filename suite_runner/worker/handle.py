"""Handle on one spawned worker process."""

import asyncio
import contextlib
import json
import logging
import os
import signal
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from suite_runner.models.descriptor import TestReport
from suite_runner.models.run import RunOptions

log = logging.getLogger(__name__)

WORKER_LAUNCHER: Sequence[str] = (sys.executable, "-m", "suite_runner.worker")
STDOUT_LIMIT = 16 * 1024 * 1024


@dataclass(frozen=True, kw_only=True)
class TestFinished:
    """A worker finished one of its tests."""

    __test__ = False

    slot: int
    report: TestReport


@dataclass(frozen=True, kw_only=True)
class WorkerExited:
    """A worker process terminated, for any reason."""

    slot: int
    returncode: int | None


type WorkerEvent = TestFinished | WorkerExited


class EventSink(Protocol):
    """Channel receiving the events of a worker."""

    def put_nowait(self, item: WorkerEvent, /) -> None:
        """Queue one event without waiting."""
        ...


class Worker(Protocol):
    """What the supervisor needs from a worker."""

    slot: int
    tests: Sequence[str]

    async def start(self, options: RunOptions) -> bool:
        """Spawn the worker, returning whether it started."""
        ...

    def kill(self) -> None:
        """Request termination of the worker."""
        ...


def build_worker_args(tests: Sequence[str], options: RunOptions) -> Sequence[str]:
    """Build the command line arguments of a worker process."""
    return [
        "--tests",
        ",".join(tests),
        "--speed",
        str(options.replay_speed),
        *(["--no-headless"] if options.no_headless else []),
        "--executor",
        options.executor,
        "--executor-config",
        json.dumps(dict(options.executor_config)),
    ]


@dataclass(kw_only=True)
class WorkerHandle:
    """Owns zero or one live worker process.

    Every report the process writes is queued on ``channel`` as a
    ``TestFinished``, followed by exactly one ``WorkerExited`` once the process
    is gone. A handle that failed to spawn never queues anything.
    """

    slot: int
    tests: Sequence[str]
    channel: EventSink
    launcher: Sequence[str] = WORKER_LAUNCHER

    _process: asyncio.subprocess.Process | None = field(default=None, init=False)
    _reader: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _killed: bool = field(default=False, init=False)

    @property
    def alive(self) -> bool:
        """Whether a process is live."""
        return self._process is not None and self._process.returncode is None

    async def start(self, options: RunOptions) -> bool:
        """Spawn the worker process for the assigned tests."""
        if self._killed:
            return False

        command = [*self.launcher, *build_worker_args(self.tests, options)]
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                limit=STDOUT_LIMIT,
                start_new_session=True,
            )
        except OSError as e:
            log.error("Worker %d failed to start: %s", self.slot, e)
            return False

        self._process = process
        self._reader = asyncio.create_task(self._read_events(process))
        log.info(
            "Worker %d started (pid=%d, %d test(s))",
            self.slot,
            process.pid,
            len(self.tests),
        )
        if self._killed:
            # Killed while spawning.
            self._terminate(process)
        return True

    def kill(self) -> None:
        """Request immediate termination; the exit is reported asynchronously."""
        self._killed = True
        if self._process is not None:
            self._terminate(self._process)

    def _terminate(self, process: asyncio.subprocess.Process) -> None:
        # The worker leads its own process group, which also holds the test
        # commands started by its executor.
        with contextlib.suppress(ProcessLookupError):
            os.killpg(process.pid, signal.SIGKILL)

    async def _read_events(self, process: asyncio.subprocess.Process) -> None:
        assert process.stdout is not None
        try:
            async for line in process.stdout:
                if not line.strip():
                    continue
                try:
                    report = TestReport.model_validate_json(line)
                except ValidationError as e:
                    log.warning("Worker %d sent a malformed report: %s", self.slot, e)
                    continue
                self.channel.put_nowait(TestFinished(slot=self.slot, report=report))
        except ValueError as e:
            # Report line over STDOUT_LIMIT, the stream is unusable.
            log.error("Worker %d output could not be read: %s", self.slot, e)
            self._terminate(process)

        returncode = await process.wait()
        self._process = None
        log.info("Worker %d exited with code %s", self.slot, returncode)
        self.channel.put_nowait(WorkerExited(slot=self.slot, returncode=returncode))
