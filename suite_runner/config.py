"""Configuration of the dashboard server."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Configuration of the dashboard server."""

    host: str = "127.0.0.1"
    port: int = 8383
    tests_dir: Path
    test_pattern: str = "*.html"
    results_path: Path
    actions_dir: Path
    static_root: Path | None = None
    executor: str = "command"
    executor_config: dict[str, Any] = Field(default_factory=dict)

    @property
    def origin(self) -> str:
        """Base URL of the server."""
        return f"http://{self.host}:{self.port}"
