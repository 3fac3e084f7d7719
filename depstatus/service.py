"""DepStatusService — the externally triggered operations of the engine."""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Ensure probes are registered before any check runs.
import depstatus.probes  # noqa: F401
from depstatus.aggregator import Aggregator
from depstatus.core.config import Settings
from depstatus.locator import ManifestLocator
from depstatus.manifests import MANIFEST_FILES
from depstatus.models import CheckKind, CheckResult, Ecosystem, ManifestEntry, Snapshot
from depstatus.presentation import StatusPresenter
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.registry import PROBE_REGISTRY
from depstatus.runner import ProcessRunner

log = structlog.get_logger("depstatus.service")


@dataclass(frozen=True)
class StatusEntry:
    ecosystem: Ecosystem
    kind: CheckKind
    count: int


@dataclass
class StatusReport:
    entries: list[StatusEntry] = field(default_factory=list)
    snapshots: dict[tuple[Ecosystem, CheckKind], Snapshot] = field(default_factory=dict)

    def count(self, ecosystem: Ecosystem, kind: CheckKind) -> int | None:
        """Package count of a snapshot, or None when never checked."""
        for entry in self.entries:
            if entry.ecosystem is ecosystem and entry.kind is kind:
                return entry.count
        return None


def read_manifest_lines(entry: ManifestEntry) -> list[str]:
    return Path(entry.absolute_path).read_text(encoding="utf-8", errors="replace").splitlines()


class DepStatusService:
    """Wire runner, locator, aggregator and probes for one project root."""

    def __init__(
        self,
        settings: Settings,
        *,
        aggregator: Aggregator | None = None,
        locator: ManifestLocator | None = None,
        runner: ProcessRunner | None = None,
        which: Callable[[str], str | None] = shutil.which,
        probes: dict[Ecosystem, Probe] | None = None,
    ) -> None:
        self.settings = settings
        self.aggregator = aggregator or Aggregator()
        self.locator = locator or ManifestLocator(settings.project_root)
        self.runner = runner or ProcessRunner()
        self._which = which
        self._probes = probes if probes is not None else dict(PROBE_REGISTRY)
        self.presenter = StatusPresenter(self.aggregator, self.locator, read_manifest_lines)

    # ── checks ───────────────────────────────────────────────────────────

    def _context(self) -> ProbeContext:
        return ProbeContext(
            project_root=self.settings.project_root,
            runner=self.runner,
            which=self._which,
            venv_dirs=self.settings.venv_dirs,
        )

    async def check(self, ecosystem: Ecosystem, kind: CheckKind) -> CheckResult:
        """Run one probe check and store its result when it succeeded."""
        probe = self._probes[ecosystem]
        ticket = self.aggregator.begin(ecosystem, kind)
        result = await probe.check(self._context(), kind)
        if result.ok:
            self.aggregator.store(ecosystem, kind, result.packages, result.display, ticket=ticket)
        return result

    async def check_outdated(self, ecosystem: Ecosystem) -> CheckResult:
        return await self.check(ecosystem, CheckKind.OUTDATED)

    async def check_vulnerabilities(self, ecosystem: Ecosystem) -> CheckResult:
        return await self.check(ecosystem, CheckKind.VULNERABILITIES)

    def submit(
        self,
        ecosystem: Ecosystem,
        kind: CheckKind,
        callback: Callable[[CheckResult], None],
    ) -> asyncio.Task[CheckResult]:
        """Start a check in the background; *callback* gets its result exactly once.

        A failing callback is logged; the task still resolves to the result.
        """

        async def _run_and_deliver() -> CheckResult:
            result = await self.check(ecosystem, kind)
            try:
                callback(result)
            except Exception:
                log.exception(
                    "service.callback_failed", ecosystem=ecosystem.value, kind=kind.value
                )
            return result

        return asyncio.create_task(
            _run_and_deliver(), name=f"check:{ecosystem.value}:{kind.value}"
        )

    async def check_all(
        self,
        kind: CheckKind,
        ecosystems: Sequence[Ecosystem] | None = None,
    ) -> list[CheckResult]:
        """Run *kind* for several ecosystems concurrently, results in input order.

        Defaults to the enabled ecosystems whose manifest is present.
        """
        targets = list(ecosystems) if ecosystems is not None else self.present_ecosystems()
        log.info("service.check_all", kind=kind.value, ecosystems=[e.value for e in targets])
        return list(await asyncio.gather(*(self.check(eco, kind) for eco in targets)))

    # ── status ───────────────────────────────────────────────────────────

    def present_ecosystems(self, candidates: Iterable[Ecosystem] | None = None) -> list[Ecosystem]:
        pool = candidates if candidates is not None else self.settings.ecosystems
        return [
            eco
            for eco in pool
            if self.locator.exists(self.settings.project_root / MANIFEST_FILES[eco])
        ]

    def query_status(self) -> StatusReport:
        snapshots = self.aggregator.snapshots()
        entries = [
            StatusEntry(ecosystem=eco, kind=kind, count=len(snap))
            for (eco, kind), snap in sorted(
                snapshots.items(), key=lambda item: (item[0][0].value, item[0][1].value)
            )
        ]
        return StatusReport(entries=entries, snapshots=snapshots)

    def reset_all(self) -> None:
        self.aggregator.reset()

    def refresh_manifest_cache(self) -> dict[Ecosystem, list[ManifestEntry]]:
        self.locator.invalidate()
        return {eco: self.locator.locate(eco) for eco in Ecosystem}
