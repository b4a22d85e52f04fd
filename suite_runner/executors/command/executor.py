"""Executor running one external command per test."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from suite_runner.executors.base import ExecutionOptions, TestExecutor
from suite_runner.executors.command.config import CommandExecutorConfig
from suite_runner.models.descriptor import StepResult, TestReport

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CommandExecutor(TestExecutor):
    """Runs the configured command for each test; exit code 0 means passed."""

    config: CommandExecutorConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: CommandExecutorConfig
    ) -> AsyncGenerator["CommandExecutor", None]:
        """Create executor from its configuration."""
        yield cls(config=config)

    def build_command(self, name: str, options: ExecutionOptions) -> Sequence[str]:
        """Substitute placeholders of the command template."""
        return [
            arg.format(
                test=name,
                speed=options.replay_speed,
                headless="true" if options.headless else "false",
            )
            for arg in self.config.command
        ]

    async def run_test(self, name: str, options: ExecutionOptions) -> TestReport:
        """Run the command for one test and report its outcome."""
        command = self.build_command(name, options)
        log.info("Running %s: %s", name, " ".join(command))

        loop = asyncio.get_running_loop()
        started = loop.time()
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=self.config.cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(), timeout=self.config.timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            duration = loop.time() - started
            return TestReport(
                name=name,
                status="error",
                results=[
                    StepResult(
                        name=name,
                        status="error",
                        duration=duration,
                        message=f"Timed out after {self.config.timeout} seconds",
                    )
                ],
            )

        duration = loop.time() - started
        status = "passed" if process.returncode == 0 else "failed"
        output = stdout.decode(errors="replace").strip()
        message = output[-self.config.output_tail :] if output else None

        return TestReport(
            name=name,
            status=status,
            results=[
                StepResult(name=name, status=status, duration=duration, message=message)
            ],
        )
