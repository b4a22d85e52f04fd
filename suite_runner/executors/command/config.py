"""Configuration for the command executor."""

from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field


class CommandExecutorConfig(BaseModel):
    """Configuration for the command executor.

    Each argument of ``command`` may use the ``{test}``, ``{speed}`` and
    ``{headless}`` placeholders.
    """

    command: Sequence[str] = Field(min_length=1)
    cwd: Path | None = None
    timeout: float = 300
    output_tail: int = 2000
