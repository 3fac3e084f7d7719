"""Asynchronous shell command runner used by every probe."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

log = structlog.get_logger("depstatus.runner")

_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: int
    stdout: str
    stderr: str

    def first_line(self) -> str:
        """First non-blank line of stderr, or of stdout when stderr is empty."""
        text = self.stderr if self.stderr.strip() else self.stdout
        for line in text.splitlines():
            if line.strip():
                return line.strip()
        return "unknown error"


class ProcessRunner:
    """Spawn shell commands without blocking the event loop.

    Spawn failures are reported as a failed :class:`ProcessOutcome`
    (exit code 1) rather than raised, so callers handle "could not start"
    and "ran and failed" the same way.
    """

    async def run(self, command_line: str, cwd: str | Path | None = None) -> ProcessOutcome:
        log.debug("runner.spawn", command=command_line, cwd=str(cwd) if cwd else None)
        try:
            proc = await asyncio.create_subprocess_shell(
                command_line,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as exc:
            log.warning("runner.spawn_failed", command=command_line, error=str(exc))
            return ProcessOutcome(
                exit_code=1,
                stdout="",
                stderr=f"failed to start '{command_line}': {exc}",
            )

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        await asyncio.gather(
            _drain(proc.stdout, stdout_chunks),
            _drain(proc.stderr, stderr_chunks),
        )
        exit_code = await proc.wait()

        outcome = ProcessOutcome(
            exit_code=exit_code,
            stdout=b"".join(stdout_chunks).decode("utf-8", errors="replace"),
            stderr=b"".join(stderr_chunks).decode("utf-8", errors="replace"),
        )
        log.debug(
            "runner.completed",
            command=command_line,
            exit_code=exit_code,
            stdout_bytes=sum(len(c) for c in stdout_chunks),
            stderr_bytes=sum(len(c) for c in stderr_chunks),
        )
        return outcome

    def submit(
        self,
        command_line: str,
        callback: Callable[[ProcessOutcome], None],
        cwd: str | Path | None = None,
    ) -> asyncio.Task[ProcessOutcome]:
        """Start *command_line* and call *callback* once with its outcome.

        Must be called from a running event loop; the callback runs on it. An
        exception raised by the callback is logged and does not fail the task.
        """

        async def _run_and_deliver() -> ProcessOutcome:
            outcome = await self.run(command_line, cwd=cwd)
            try:
                callback(outcome)
            except Exception:
                log.exception("runner.callback_failed", command=command_line)
            return outcome

        return asyncio.create_task(_run_and_deliver(), name=f"run:{command_line}")


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
