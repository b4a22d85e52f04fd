"""Observer channel used to push run progress to a client."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from suite_runner.models.descriptor import TestDescriptor


class Observer(Protocol):
    """A per-client event channel."""

    async def emit(self, event: str, data: Mapping[str, Any] | None = None) -> None:
        """Send one event to the client."""
        ...


def snapshot(
    tests: Sequence[TestDescriptor], *, running: bool = False
) -> dict[str, Any]:
    """Build the payload of an ``update`` event from all known tests."""
    payload: dict[str, Any] = {
        "tests": [test.model_dump(mode="json") for test in tests]
    }
    if running:
        payload["running"] = True
    return payload
