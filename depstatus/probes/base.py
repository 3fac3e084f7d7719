"""Common probe policy: preconditions, spawning, exit codes, parsing."""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from depstatus.core.config import DEFAULT_VENV_DIRS
from depstatus.exceptions import (
    ManifestMissingError,
    ProcessFailureError,
    ToolMissingError,
)
from depstatus.models import (
    CheckKind,
    CheckResult,
    Ecosystem,
    FailureKind,
    ParsedOutput,
)
from depstatus.runner import ProcessRunner

log = structlog.get_logger("depstatus.probe")


def _path_exists(path: Path) -> bool:
    return path.exists()


@dataclass
class ProbeContext:
    """Everything a probe needs from the outside world.

    ``exists`` and ``which`` are injectable for test fakes. Preconditions
    always look at the filesystem; the locator's memoized checks are only
    for manifest discovery and annotations.
    """

    project_root: Path
    runner: ProcessRunner = field(default_factory=ProcessRunner)
    exists: Callable[[Path], bool] = _path_exists
    which: Callable[[str], str | None] = shutil.which
    venv_dirs: tuple[str, ...] = DEFAULT_VENV_DIRS

    def path(self, name: str) -> Path:
        return self.project_root / name

    def require_file(self, name: str, message: str | None = None) -> Path:
        path = self.path(name)
        if not self.exists(path):
            raise ManifestMissingError(message or f"No {name} found in project")
        return path

    def require_tool(self, tool: str, hint: str) -> str:
        found = self.which(tool)
        if not found:
            raise ToolMissingError(tool, hint)
        return found


class Probe:
    """Base class for ecosystem probes.

    Subclasses declare ``ecosystem`` and ``manifest``, build their two
    commands and provide pure parse functions. Probes hold no state between
    checks.
    """

    ecosystem: Ecosystem
    manifest: str
    outdated_exit_codes: frozenset[int] = frozenset({0})
    vulnerability_exit_codes: frozenset[int] = frozenset({0})

    # ── subclass hooks ───────────────────────────────────────────────────

    def check_preconditions(self, ctx: ProbeContext, kind: CheckKind) -> None:
        ctx.require_file(self.manifest)

    def outdated_command(self, ctx: ProbeContext) -> str:
        raise NotImplementedError

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        raise NotImplementedError

    def parse_outdated(self, text: str) -> ParsedOutput:
        raise NotImplementedError

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        raise NotImplementedError

    # ── public operations ────────────────────────────────────────────────

    async def check_outdated(self, ctx: ProbeContext) -> CheckResult:
        return await self.check(ctx, CheckKind.OUTDATED)

    async def check_vulnerabilities(self, ctx: ProbeContext) -> CheckResult:
        return await self.check(ctx, CheckKind.VULNERABILITIES)

    async def check(self, ctx: ProbeContext, kind: CheckKind) -> CheckResult:
        bound = log.bind(ecosystem=self.ecosystem.value, kind=kind.value)

        if kind is CheckKind.OUTDATED:
            build, parse, accepted = (
                self.outdated_command,
                self.parse_outdated,
                self.outdated_exit_codes,
            )
        else:
            build, parse, accepted = (
                self.vulnerability_command,
                self.parse_vulnerabilities,
                self.vulnerability_exit_codes,
            )

        try:
            self.check_preconditions(ctx, kind)
            command = build(ctx)
            outcome = await ctx.runner.run(command, cwd=ctx.project_root)
            if outcome.exit_code not in accepted:
                raise ProcessFailureError(command, outcome.exit_code, outcome.first_line())
        except ManifestMissingError as exc:
            bound.info("probe.manifest_missing", error=str(exc))
            return CheckResult.failed(self.ecosystem, kind, FailureKind.MANIFEST_MISSING, str(exc))
        except ToolMissingError as exc:
            bound.info("probe.tool_missing", tool=exc.tool)
            return CheckResult.failed(self.ecosystem, kind, FailureKind.TOOL_MISSING, str(exc))
        except ProcessFailureError as exc:
            bound.warning("probe.process_failed", command=exc.command, exit_code=exc.exit_code)
            return CheckResult.failed(
                self.ecosystem, kind, FailureKind.PROCESS_FAILURE, str(exc)
            )

        parsed = parse(outcome.stdout)
        bound.info("probe.completed", packages=len(parsed))
        return CheckResult.from_parsed(self.ecosystem, kind, parsed)
