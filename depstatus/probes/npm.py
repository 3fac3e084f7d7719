"""npm probe: ``npm outdated`` and ``npm audit``."""

from __future__ import annotations

from depstatus.models import (
    CheckKind,
    Ecosystem,
    Finding,
    PackageRecord,
    ParsedOutput,
    Severity,
)
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.jsonscan import json_objects, string_field
from depstatus.probes.registry import register_probe

NPM_OUTDATED = "npm outdated --depth=0 --color=false"
NPM_AUDIT = "npm audit --json"


def parse_outdated(text: str) -> ParsedOutput:
    """Parse ``Package Current Wanted Latest ...`` rows."""
    parsed = ParsedOutput()
    lines = text.splitlines()
    if lines and lines[0].startswith("Package"):
        lines = lines[1:]
    for line in lines:
        parts = line.split()
        if len(parts) < 4:
            continue
        name, current, wanted, latest = parts[:4]
        available = latest if wanted == latest else wanted
        parsed.add_package(PackageRecord(name, current, available))
    return parsed


def parse_vulnerabilities(text: str) -> ParsedOutput:
    """Collect (module, severity, title) advisories from ``npm audit --json``.

    npm 6 reports ``advisories`` keyed by id with ``module_name``; npm 7+
    nests advisory objects (with ``name``) in each vulnerability's ``via``
    list. Both carry ``title`` and ``severity``. A package keeps the highest
    severity among its advisories.
    """
    parsed = ParsedOutput()
    seen: set[tuple[str, str, str]] = set()
    for obj in json_objects(text):
        title = string_field(obj, "title")
        name = string_field(obj, "module_name", "name")
        if not title or not name:
            continue
        advisory_id = string_field(obj, "id", "source", "url") or ""
        key = (name, advisory_id, title)
        if key in seen:
            continue
        seen.add(key)
        severity = Severity.parse(obj.get("severity"))
        parsed.add_finding(name, severity, Finding(advisory_id, title))
    return parsed


class NpmProbe(Probe):
    ecosystem = Ecosystem.NPM
    manifest = "package.json"
    # npm audit exits 1 when it finds vulnerabilities.
    vulnerability_exit_codes = frozenset({0, 1})

    def check_preconditions(self, ctx: ProbeContext, kind: CheckKind) -> None:
        ctx.require_file(self.manifest)
        if kind is CheckKind.OUTDATED:
            ctx.require_file(
                "node_modules", "No node_modules/ found, run `npm install` first"
            )

    def outdated_command(self, ctx: ProbeContext) -> str:
        return NPM_OUTDATED

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        return NPM_AUDIT

    def parse_outdated(self, text: str) -> ParsedOutput:
        return parse_outdated(text)

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        return parse_vulnerabilities(text)


register_probe(NpmProbe())
