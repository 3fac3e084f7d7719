"""Uniform result model shared by every ecosystem probe."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Union

from depstatus.exceptions import UnknownEcosystemError

# Vulnerability descriptions are cut to this many characters in display lines.
DESCRIPTION_LIMIT = 80


class Ecosystem(str, enum.Enum):
    PYTHON = "python"
    GO = "go"
    NPM = "npm"
    COMPOSER = "composer"
    CARGO = "cargo"

    @classmethod
    def parse(cls, name: str) -> Ecosystem:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise UnknownEcosystemError(name) from None

    @property
    def label(self) -> str:
        return _ECOSYSTEM_LABELS[self]


_ECOSYSTEM_LABELS = {
    Ecosystem.PYTHON: "Python",
    Ecosystem.GO: "Go",
    Ecosystem.NPM: "npm",
    Ecosystem.COMPOSER: "Composer",
    Ecosystem.CARGO: "Cargo",
}


class CheckKind(str, enum.Enum):
    OUTDATED = "outdated"
    VULNERABILITIES = "vulnerabilities"


class FailureKind(str, enum.Enum):
    TOOL_MISSING = "tool_missing"
    MANIFEST_MISSING = "manifest_missing"
    PROCESS_FAILURE = "process_failure"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: object) -> Severity:
        """Map a tool-reported severity to a member; anything unknown is MEDIUM."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


def max_severity(a: Severity, b: Severity) -> Severity:
    """Return the more severe of *a* and *b* (ties keep *a*)."""
    return b if b.rank > a.rank else a


@dataclass(frozen=True)
class PackageRecord:
    """A package whose declared version is behind the latest available."""

    name: str
    current_version: str
    available_version: str


@dataclass(frozen=True)
class Finding:
    """One advisory reported against a package."""

    id: str
    description: str


@dataclass(frozen=True)
class VulnerabilityRecord:
    """All findings reported against one package in a single scan."""

    package_name: str
    severity: Severity
    findings: tuple[Finding, ...] = ()

    def with_finding(self, severity: Severity, finding: Finding) -> VulnerabilityRecord:
        return replace(
            self,
            severity=max_severity(self.severity, severity),
            findings=self.findings + (finding,),
        )


Record = Union[PackageRecord, VulnerabilityRecord]


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def format_outdated(record: PackageRecord) -> str:
    return f"{record.name}: {record.current_version} → {record.available_version}"


def format_finding(package: str, severity: Severity, finding: Finding) -> str:
    tag = f"[{severity.value.upper()}] {package}:"
    if finding.id:
        return f"{tag} {finding.id} - {truncate(finding.description)}"
    return f"{tag} {truncate(finding.description)}"


@dataclass
class ParsedOutput:
    """Accumulator filled by the pure parse functions of each probe."""

    packages: dict[str, Record] = field(default_factory=dict)
    display: list[str] = field(default_factory=list)

    def add_package(self, record: PackageRecord) -> None:
        # A repeated name replaces the earlier row; its display line goes too.
        if record.name in self.packages:
            previous = self.packages[record.name]
            if isinstance(previous, PackageRecord):
                self.display.remove(format_outdated(previous))
        self.packages[record.name] = record
        self.display.append(format_outdated(record))

    def add_finding(self, package: str, severity: Severity, finding: Finding) -> None:
        current = self.packages.get(package)
        if isinstance(current, VulnerabilityRecord):
            self.packages[package] = current.with_finding(severity, finding)
        else:
            self.packages[package] = VulnerabilityRecord(
                package_name=package, severity=severity, findings=(finding,)
            )
        self.display.append(format_finding(package, severity, finding))

    def __len__(self) -> int:
        return len(self.packages)


@dataclass
class CheckResult:
    """Outcome of one probe check.

    ``error`` set means the check could not run; ``packages`` and ``display``
    are then always empty and must not be read as "nothing found".
    """

    ecosystem: Ecosystem
    kind: CheckKind
    packages: dict[str, Record] = field(default_factory=dict)
    display: list[str] = field(default_factory=list)
    error: str | None = None
    failure: FailureKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_parsed(
        cls, ecosystem: Ecosystem, kind: CheckKind, parsed: ParsedOutput
    ) -> CheckResult:
        return cls(
            ecosystem=ecosystem,
            kind=kind,
            packages=dict(parsed.packages),
            display=list(parsed.display),
        )

    @classmethod
    def failed(
        cls, ecosystem: Ecosystem, kind: CheckKind, failure: FailureKind, error: str
    ) -> CheckResult:
        return cls(ecosystem=ecosystem, kind=kind, error=error, failure=failure)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of one (ecosystem, kind) result set held by the aggregator."""

    ecosystem: Ecosystem
    kind: CheckKind
    packages: Mapping[str, Record]
    display: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return name in self.packages


@dataclass(frozen=True)
class ManifestEntry:
    """A known manifest file for one ecosystem."""

    container_id: int
    absolute_path: str
    file_name: str


@dataclass(frozen=True)
class ManifestMatch:
    """A dependency declaration found on one line of a manifest."""

    line_index: int
    name: str
    version: str
    span: tuple[int, int]


def ecosystems_from_names(names: Iterable[str]) -> list[Ecosystem]:
    """Parse ecosystem names, dropping duplicates but keeping order."""
    result: list[Ecosystem] = []
    for name in names:
        eco = Ecosystem.parse(name)
        if eco not in result:
            result.append(eco)
    return result
