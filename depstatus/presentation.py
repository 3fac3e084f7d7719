"""Query/presentation layer over the aggregator's snapshots.

Nothing here touches the filesystem or spawns processes: manifest contents
arrive through an injected line reader and output goes to collaborator
objects (a list view, an annotation sink).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from depstatus.aggregator import Aggregator
from depstatus.locator import ManifestLocator
from depstatus.manifests import parse_manifest
from depstatus.models import (
    CheckKind,
    CheckResult,
    Ecosystem,
    ManifestEntry,
    PackageRecord,
    Record,
    Snapshot,
    VulnerabilityRecord,
)

LineReader = Callable[[ManifestEntry], Sequence[str]]


class ListView(Protocol):
    """A searchable list (fuzzy picker) of display strings."""

    def show(
        self,
        title: str,
        entries: Sequence[str],
        on_select: Callable[[str], None] | None = None,
    ) -> None: ...


class AnnotationSink(Protocol):
    """Renders inline labels next to manifest lines."""

    def annotate(self, handle: int, line_index: int, span: tuple[int, int], label: str) -> None: ...

    def clear(self, handle: int) -> None: ...


@dataclass(frozen=True)
class Notice:
    level: Literal["error", "info"]
    message: str


def title_for(ecosystem: Ecosystem, kind: CheckKind) -> str:
    if kind is CheckKind.OUTDATED:
        noun = "Modules" if ecosystem is Ecosystem.GO else "Packages"
        return f"Outdated {ecosystem.label} {noun}"
    return f"{ecosystem.label} Security Vulnerabilities"


def nothing_found(ecosystem: Ecosystem, kind: CheckKind) -> str:
    if kind is CheckKind.OUTDATED:
        noun = "modules" if ecosystem is Ecosystem.GO else "packages"
        return f"No outdated {ecosystem.label} {noun}"
    return f"No {ecosystem.label} vulnerabilities found"


def describe(result: CheckResult) -> Notice:
    """One user-facing notice; "could not check" never reads as "nothing found"."""
    if result.error is not None:
        return Notice("error", f"Could not check {result.ecosystem.label}: {result.error}")
    if not result.packages:
        return Notice("info", nothing_found(result.ecosystem, result.kind))
    count = len(result.packages)
    if result.kind is CheckKind.OUTDATED:
        return Notice("info", f"Found {count} outdated {result.ecosystem.label} package(s)")
    return Notice("info", f"Found {count} vulnerable {result.ecosystem.label} package(s)")


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def _lookup(snapshot: Snapshot | None, name: str) -> Record | None:
    if snapshot is None:
        return None
    record = snapshot.packages.get(name)
    if record is not None:
        return record
    wanted = _normalize(name)
    for key, candidate in snapshot.packages.items():
        if _normalize(key) == wanted:
            return candidate
    return None


def annotation_label(outdated: Record | None, vulnerable: Record | None) -> str | None:
    parts = []
    if isinstance(outdated, PackageRecord):
        parts.append(f"→ {outdated.available_version} available")
    if isinstance(vulnerable, VulnerabilityRecord):
        count = len(vulnerable.findings)
        noun = "vulnerability" if count == 1 else "vulnerabilities"
        parts.append(f"{vulnerable.severity.value.upper()} {noun} ({count})")
    return "  ".join(parts) or None


class StatusPresenter:
    """Turns current snapshots into list entries and manifest annotations."""

    def __init__(
        self,
        aggregator: Aggregator,
        locator: ManifestLocator,
        read_lines: LineReader,
    ) -> None:
        self._aggregator = aggregator
        self._locator = locator
        self._read_lines = read_lines

    def picker(self, ecosystem: Ecosystem, kind: CheckKind) -> tuple[str, list[str]]:
        snapshot = self._aggregator.query(ecosystem, kind)
        entries = list(snapshot.display) if snapshot is not None else []
        return title_for(ecosystem, kind), entries

    def show(
        self,
        view: ListView,
        ecosystem: Ecosystem,
        kind: CheckKind,
        on_select: Callable[[str], None] | None = None,
    ) -> bool:
        """Open *view* with the current entries; False when there is nothing to list."""
        title, entries = self.picker(ecosystem, kind)
        if not entries:
            return False
        view.show(title, entries, on_select)
        return True

    def annotate(self, ecosystem: Ecosystem, sink: AnnotationSink) -> int:
        """Label every manifest line whose package is outdated or vulnerable."""
        outdated = self._aggregator.query(ecosystem, CheckKind.OUTDATED)
        vulnerable = self._aggregator.query(ecosystem, CheckKind.VULNERABILITIES)
        annotated = 0

        for entry in self._locator.locate(ecosystem):
            if not self._locator.exists(entry.absolute_path):
                continue
            sink.clear(entry.container_id)
            for match in parse_manifest(ecosystem, self._read_lines(entry)):
                label = annotation_label(
                    _lookup(outdated, match.name), _lookup(vulnerable, match.name)
                )
                if label is None:
                    continue
                sink.annotate(entry.container_id, match.line_index, match.span, label)
                annotated += 1
        return annotated

    def clear_all(self, sink: AnnotationSink) -> None:
        for ecosystem in Ecosystem:
            for entry in self._locator.locate(ecosystem):
                sink.clear(entry.container_id)
