"""Worker process started by the supervisor: ``python -m suite_runner.worker``."""

from suite_runner.worker.cli import main

main()
