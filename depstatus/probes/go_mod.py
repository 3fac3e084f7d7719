"""Go probe: ``go list -m -u all`` and ``govulncheck``."""

from __future__ import annotations

from typing import Any

from depstatus.models import Ecosystem, Finding, PackageRecord, ParsedOutput, Severity
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.jsonscan import json_objects, string_field
from depstatus.probes.registry import register_probe

GO_LIST_UPDATES = "go list -m -u all"
GOVULNCHECK = "govulncheck -json ./..."

_NO_SUMMARY = "No summary available"


def parse_outdated(text: str) -> ParsedOutput:
    """Parse ``module current => available ...`` lines; other lines are ignored."""
    parsed = ParsedOutput()
    for line in text.splitlines():
        if "=>" not in line:
            continue
        parts = line.strip().split(None, 1)
        if len(parts) < 2 or "=>" in parts[0]:
            continue
        module, versions = parts
        current, _, available = versions.partition("=>")
        tokens = available.split()
        if not tokens:
            continue
        parsed.add_package(PackageRecord(module, current.strip(), tokens[0]))
    return parsed


def _finding_module(finding: dict[str, Any]) -> str | None:
    module = string_field(finding, "module")
    if module:
        return module
    trace = finding.get("trace")
    if isinstance(trace, list):
        for frame in trace:
            if isinstance(frame, dict):
                module = string_field(frame, "module")
                if module:
                    return module
    return None


def parse_vulnerabilities(text: str) -> ParsedOutput:
    """Collect govulncheck findings as (module, OSV id, summary).

    Summaries come from the ``osv`` entries of the same stream. A finding
    is repeated by govulncheck for each trace depth, so a (module, id) pair
    is only recorded once.
    """
    summaries: dict[str, str] = {}
    findings: list[dict[str, Any]] = []

    for obj in json_objects(text):
        osv = obj.get("osv")
        if isinstance(osv, dict):
            osv_id = string_field(osv, "id")
            summary = string_field(osv, "summary", "details")
            if osv_id and summary:
                summaries[osv_id] = summary
        if "finding" in obj:
            finding = obj["finding"]
            findings.append(finding if isinstance(finding, dict) else obj)

    parsed = ParsedOutput()
    seen: set[tuple[str, str]] = set()
    for finding in findings:
        module = _finding_module(finding)
        vuln_id = string_field(finding, "osv", "OSV")
        if not module or not vuln_id or (module, vuln_id) in seen:
            continue
        seen.add((module, vuln_id))
        summary = string_field(finding, "summary") or summaries.get(vuln_id) or _NO_SUMMARY
        parsed.add_finding(module, Severity.MEDIUM, Finding(vuln_id, summary))
    return parsed


class GoProbe(Probe):
    ecosystem = Ecosystem.GO
    manifest = "go.mod"

    def outdated_command(self, ctx: ProbeContext) -> str:
        return GO_LIST_UPDATES

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool(
            "govulncheck",
            "Install with: go install golang.org/x/vuln/cmd/govulncheck@latest",
        )
        return GOVULNCHECK

    def parse_outdated(self, text: str) -> ParsedOutput:
        return parse_outdated(text)

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        return parse_vulnerabilities(text)


register_probe(GoProbe())
