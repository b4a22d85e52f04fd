"""WebSocket server exposing the dashboard and recorder endpoints."""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Coroutine, Mapping
from dataclasses import dataclass
from typing import Any

from aiohttp import WSMsgType, web
from pydantic import ValidationError

from suite_runner.config import ServerConfig
from suite_runner.models.base import Model
from suite_runner.models.run import (
    DEFAULT_REPLAY_SPEED,
    RecorderRequest,
    RunOptions,
    RunRequest,
)
from suite_runner.observer import snapshot
from suite_runner.store import ResultsStore
from suite_runner.supervisor import RunSupervisor

log = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", ServerConfig)
STORE_KEY = web.AppKey("store", ResultsStore)
SUPERVISOR_KEY = web.AppKey("supervisor", RunSupervisor)
TASKS_KEY = web.AppKey("tasks", set[asyncio.Task[None]])

SINGLE_RUN_REPLAY_SPEED = 2


class Message(Model):
    """Envelope of every message exchanged over a socket."""

    event: str
    data: dict[str, Any] | None = None

    @property
    def payload(self) -> dict[str, Any]:
        """Event data, empty when the client sent none."""
        return self.data or {}


@dataclass(frozen=True, kw_only=True)
class WebSocketObserver:
    """Observer pushing events to one connected client."""

    ws: web.WebSocketResponse

    async def emit(self, event: str, data: Mapping[str, Any] | None = None) -> None:
        """Send one event; events to a disconnected client are dropped."""
        if self.ws.closed:
            log.debug("Dropping %s event for closed socket", event)
            return
        try:
            await self.ws.send_json({"event": event, "data": dict(data or {})})
        except ConnectionResetError:
            log.debug("Dropping %s event for closing socket", event)


async def receive_messages(
    ws: web.WebSocketResponse,
) -> AsyncGenerator[Message, None]:
    """Yield valid messages received on a socket until it closes."""
    async for msg in ws:
        if msg.type != WSMsgType.TEXT:
            continue
        try:
            yield Message.model_validate_json(msg.data)
        except ValidationError as e:
            log.warning("Ignoring malformed message: %s", e)


def spawn(app: web.Application, coro: Coroutine[Any, Any, None]) -> None:
    """Run a request handler in the background, keeping a reference to it."""
    tasks = app[TASKS_KEY]
    task = asyncio.create_task(coro)
    tasks.add(task)
    task.add_done_callback(tasks.discard)


def run_options(config: ServerConfig, **kwargs: Any) -> RunOptions:
    """Build run options with the configured executor."""
    return RunOptions(
        executor=config.executor,
        executor_config=config.executor_config,
        **kwargs,
    )


async def run_tests(
    app: web.Application, observer: WebSocketObserver, data: Mapping[str, Any]
) -> None:
    """Handle a dashboard run request until the run finishes."""
    try:
        request = RunRequest.model_validate(data)
    except ValidationError as e:
        log.warning("Ignoring invalid run request: %s", e)
        return

    supervisor = app[SUPERVISOR_KEY]
    log.info("Received: %s", ",".join(request.tests))
    start_time = time.monotonic()
    threads = request.threads or 1

    options = run_options(
        app[CONFIG_KEY],
        no_headless=request.no_headless,
        worker_count=threads,
        replay_speed=request.replay_speed or DEFAULT_REPLAY_SPEED,
    )
    try:
        outcome = await supervisor.start_run(request.tests, observer, options)
    except Exception:
        log.exception("Run failed")
    else:
        if outcome.generation != supervisor.generation:
            log.info("Run %d was superseded by a newer run", outcome.generation)
            return

    log.info("Finished")
    await observer.emit(
        "finish",
        {
            "time": int((time.monotonic() - start_time) * 1000),
            "count": len(request.tests),
            "threads": threads,
        },
    )


async def run_single_test(
    app: web.Application, observer: WebSocketObserver, data: Mapping[str, Any]
) -> None:
    """Handle a recorder request to replay one test in visible mode."""
    try:
        request = RecorderRequest.model_validate(data)
    except ValidationError as e:
        log.warning("Ignoring invalid runSingle request: %s", e)
        return

    supervisor = app[SUPERVISOR_KEY]
    options = run_options(
        app[CONFIG_KEY],
        no_headless=True,
        worker_count=1,
        replay_speed=SINGLE_RUN_REPLAY_SPEED,
    )
    try:
        outcome = await supervisor.start_run([request.test_name], observer, options)
    except Exception:
        log.exception("Run of %s failed", request.test_name)
    else:
        if outcome.generation != supervisor.generation:
            log.info("Run %d was superseded by a newer run", outcome.generation)
            return

    log.info("Finished")
    await observer.emit("finish")


async def client_handler(request: web.Request) -> web.WebSocketResponse:
    """Dashboard endpoint: run, stop and follow test runs."""
    app = request.app
    store = app[STORE_KEY]
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    observer = WebSocketObserver(ws=ws)

    store.refresh()
    await observer.emit("update", snapshot(store.tests))

    async for message in receive_messages(ws):
        match message.event:
            case "run":
                spawn(app, run_tests(app, observer, message.payload))
            case "stop":
                app[SUPERVISOR_KEY].stop()
            case _:
                log.warning("Unknown client event: %s", message.event)

    return ws


async def recorder_handler(request: web.Request) -> web.WebSocketResponse:
    """Recorder endpoint: save, load and replay recorded actions."""
    app = request.app
    store = app[STORE_KEY]
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    observer = WebSocketObserver(ws=ws)

    store.refresh()
    await observer.emit(
        "getTests",
        {"tests": [{"name": t.name, "actions": t.actions} for t in store.tests]},
    )

    async for message in receive_messages(ws):
        match message.event:
            case "runSingle":
                spawn(app, run_single_test(app, observer, message.payload))
            case "saveActions" | "changeTest":
                await handle_recording(store, observer, message)
            case _:
                log.warning("Unknown recorder event: %s", message.event)

    return ws


async def handle_recording(
    store: ResultsStore, observer: WebSocketObserver, message: Message
) -> None:
    """Save or load the recorded actions of a test."""
    try:
        request = RecorderRequest.model_validate(message.payload)
    except ValidationError as e:
        log.warning("Ignoring invalid %s request: %s", message.event, e)
        return

    if message.event == "saveActions":
        save_actions(store, request)
    else:
        await change_test(store, observer, request)


def save_actions(store: ResultsStore, request: RecorderRequest) -> None:
    """Persist the actions recorded for a test."""
    if not request.test_name:
        return
    try:
        store.save_actions(request.test_name, request.actions)
    except (OSError, ValueError) as e:
        log.error("Cannot save actions of %s: %s", request.test_name, e)


async def change_test(
    store: ResultsStore, observer: WebSocketObserver, request: RecorderRequest
) -> None:
    """Send the recorded actions of a test, if it has any."""
    try:
        actions = store.load_actions(request.test_name)
    except (OSError, ValueError) as e:
        log.debug("No readable actions for %s: %s", request.test_name, e)
        return
    if actions is not None:
        await observer.emit(
            "updateActions", {"testName": request.test_name, "actions": actions}
        )


async def on_shutdown(app: web.Application) -> None:
    """Stop the current run and abandon pending request handlers."""
    app[SUPERVISOR_KEY].stop()
    for task in list(app[TASKS_KEY]):
        task.cancel()


def create_app(
    config: ServerConfig, supervisor: RunSupervisor | None = None
) -> web.Application:
    """Create the web application.

    Args:
        config: Server configuration
        supervisor: Supervisor to use; one spawning real workers by default

    Returns:
        Application with the ``/client`` and ``/recorder`` socket endpoints

    """
    if supervisor is None:
        store = ResultsStore(
            tests_dir=config.tests_dir,
            results_path=config.results_path,
            actions_dir=config.actions_dir,
            pattern=config.test_pattern,
        )
        supervisor = RunSupervisor(store=store)

    app = web.Application()
    app[CONFIG_KEY] = config
    app[STORE_KEY] = supervisor.store
    app[SUPERVISOR_KEY] = supervisor
    app[TASKS_KEY] = set()

    app.router.add_get("/client", client_handler)
    app.router.add_get("/recorder", recorder_handler)
    if config.static_root is not None:
        app.router.add_static("/", config.static_root)

    app.on_shutdown.append(on_shutdown)
    return app
