"""Shared pytest fixtures for depstatus tests.

No external tools are needed: probes run against a fake process runner and
a fake PATH lookup.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from depstatus.probes.base import ProbeContext
from depstatus.runner import ProcessOutcome, ProcessRunner


class FakeRunner(ProcessRunner):
    """Returns canned outcomes keyed by a substring of the command line."""

    def __init__(self, outcomes: dict[str, ProcessOutcome] | None = None) -> None:
        self.outcomes = dict(outcomes or {})
        self.calls: list[str] = []

    def set(self, fragment: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.outcomes[fragment] = ProcessOutcome(exit_code, stdout, stderr)

    async def run(self, command_line, cwd=None):
        self.calls.append(command_line)
        for fragment, outcome in self.outcomes.items():
            if fragment in command_line:
                return outcome
        return ProcessOutcome(0, "", "")


def make_which(*tools: str):
    """A ``shutil.which`` stand-in that only knows *tools*."""
    available = set(tools)

    def _which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    return _which


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def make_ctx(project: Path, runner: FakeRunner):
    def _make(*tools: str) -> ProbeContext:
        return ProbeContext(project_root=project, runner=runner, which=make_which(*tools))

    return _make
