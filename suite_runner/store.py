"""File-backed store of known tests and their last results."""

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from suite_runner.models.descriptor import TestDescriptor, TestReport

log = logging.getLogger(__name__)

_DESCRIPTORS = TypeAdapter(list[TestDescriptor])


class ResultsStore:
    """Authoritative list of known tests.

    Tests are discovered from files matching ``pattern`` under ``tests_dir``;
    a test's name is its file path relative to ``tests_dir`` without the
    suffix. Statuses and results survive restarts through ``results_path``.
    Descriptors are immutable, every change replaces the stored instance.
    """

    __test__ = False

    def __init__(
        self,
        tests_dir: Path,
        results_path: Path,
        actions_dir: Path,
        pattern: str = "*.html",
    ) -> None:
        self.tests_dir = tests_dir
        self.results_path = results_path
        self.actions_dir = actions_dir
        self.pattern = pattern
        self._tests: dict[str, TestDescriptor] = {}
        self._loaded = False

    @property
    def tests(self) -> Sequence[TestDescriptor]:
        """All known tests in discovery order."""
        return list(self._tests.values())

    def get(self, name: str) -> TestDescriptor | None:
        """Return the descriptor of a test, if known."""
        return self._tests.get(name)

    def refresh(self) -> Sequence[TestDescriptor]:
        """Rescan the tests directory, keeping statuses of known tests.

        The first refresh loads persisted results. Tests persisted as
        ``pending`` belong to a run that no longer exists and are loaded
        as ``unsettled``.
        """
        if not self._loaded:
            self._tests = {
                test.name: test for test in self._load_persisted()
            }
            self._loaded = True

        discovered: dict[str, TestDescriptor] = {}
        for file_path in sorted(self.tests_dir.rglob(self.pattern)):
            relative = file_path.relative_to(self.tests_dir)
            name = relative.with_suffix("").as_posix()
            known = self._tests.get(name)
            discovered[name] = (
                known.model_copy(update={"path": relative.as_posix()})
                if known is not None
                else TestDescriptor(
                    name=name,
                    path=relative.as_posix(),
                    actions=self._count_actions(name),
                )
            )

        self._tests = discovered
        log.debug("Discovered %d test(s) in %s", len(discovered), self.tests_dir)
        return self.tests

    def reset_for_run(self, names: Iterable[str]) -> Sequence[str]:
        """Reset the requested known tests to pending with empty results.

        Returns:
            Names of the reset tests, in store order. Unknown names are
            ignored.

        """
        requested = set(names)
        pending = [name for name in self._tests if name in requested]
        for name in pending:
            self._tests[name] = self._tests[name].model_copy(
                update={"status": "pending", "results": []}
            )
        return pending

    def merge_results(self, reports: Iterable[TestReport]) -> None:
        """Replace status and results of known tests with worker reports."""
        for report in reports:
            current = self._tests.get(report.name)
            if current is None:
                log.warning("Ignoring report for unknown test %s", report.name)
                continue
            self._tests[report.name] = current.model_copy(
                update={"status": report.status, "results": list(report.results)}
            )

    def mark_unsettled(self, names: Iterable[str]) -> Sequence[str]:
        """Mark tests still pending as unsettled and return their names."""
        unsettled: list[str] = []
        for name in names:
            current = self._tests.get(name)
            if current is not None and current.status == "pending":
                self._tests[name] = current.model_copy(update={"status": "unsettled"})
                unsettled.append(name)
        return unsettled

    def save(self) -> None:
        """Persist all known tests to ``results_path``."""
        self.results_path.parent.mkdir(parents=True, exist_ok=True)
        # The results file is only ever replaced whole.
        partial = self.results_path.with_name(f"{self.results_path.name}.tmp")
        partial.write_bytes(_DESCRIPTORS.dump_json(self.tests, indent=2))
        partial.replace(self.results_path)

    def actions_path(self, name: str) -> Path:
        """Path of the recorded actions file of a test.

        Raises:
            ValueError: If the name points outside of ``actions_dir``

        """
        path = self.actions_dir / f"{name}.json"
        if not path.resolve().is_relative_to(self.actions_dir.resolve()):
            raise ValueError(f"Invalid test name: {name!r}")
        return path

    def save_actions(self, name: str, actions: Sequence[Any]) -> None:
        """Persist recorded actions and update the test's action count."""
        path = self.actions_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(list(actions)), encoding="utf-8")
        self.update_actions_meta(name, actions)

    def load_actions(self, name: str) -> Sequence[Any] | None:
        """Load recorded actions of a test, None if there are none."""
        path = self.actions_path(name)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def update_actions_meta(self, name: str, actions: Sequence[Any]) -> None:
        """Record how many actions a test has."""
        current = self._tests.get(name)
        if current is not None:
            self._tests[name] = current.model_copy(update={"actions": len(actions)})

    def _count_actions(self, name: str) -> int:
        try:
            actions = self.load_actions(name)
        except (OSError, ValueError):
            log.warning("Cannot read recorded actions of %s", name, exc_info=True)
            return 0
        return len(actions) if actions is not None else 0

    def _load_persisted(self) -> Sequence[TestDescriptor]:
        if not self.results_path.is_file():
            return []
        try:
            tests = _DESCRIPTORS.validate_json(self.results_path.read_bytes())
        except ValidationError:
            log.warning(
                "Ignoring unreadable results in %s", self.results_path, exc_info=True
            )
            return []
        return [
            test.model_copy(update={"status": "unsettled"})
            if test.status == "pending"
            else test
            for test in tests
        ]
