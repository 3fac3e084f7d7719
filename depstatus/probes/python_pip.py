"""Python probe: ``pip list --outdated`` and ``safety check``."""

from __future__ import annotations

import shlex
from typing import Any

from depstatus.exceptions import ToolMissingError
from depstatus.models import (
    Ecosystem,
    Finding,
    PackageRecord,
    ParsedOutput,
    Severity,
)
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.jsonscan import iter_json_values, string_field, walk_objects
from depstatus.probes.registry import register_probe

PIP_OUTDATED = "pip list --outdated --format=columns"
SAFETY_CHECK = "safety check --json"

# "Package  Version  Latest  Type" followed by a dashed rule.
_HEADER_LINES = 2


def find_python(ctx: ProbeContext) -> str:
    """Prefer a project-local virtualenv interpreter, then PATH."""
    for venv in ctx.venv_dirs:
        candidate = ctx.path(venv) / "bin" / "python"
        if ctx.exists(candidate):
            return str(candidate)
    for name in ("python3", "python"):
        found = ctx.which(name)
        if found:
            return found
    raise ToolMissingError("python", "No Python executable found on PATH or in a local virtualenv")


def parse_outdated(text: str) -> ParsedOutput:
    parsed = ParsedOutput()
    for line in text.splitlines()[_HEADER_LINES:]:
        parts = line.split()
        if len(parts) < 3:
            continue
        name, current, available = parts[:3]
        parsed.add_package(PackageRecord(name, current, available))
    return parsed


def _safety_triples(value: Any):
    # safety 2.x: objects with package_name / vulnerability_id / advisory.
    for obj in walk_objects(value):
        name = string_field(obj, "package_name")
        vuln_id = string_field(obj, "vulnerability_id")
        if name and vuln_id:
            yield name, vuln_id, string_field(obj, "advisory") or ""
    # safety 1.x: rows of [name, spec, version, advisory, id, ...].
    if isinstance(value, list):
        for row in value:
            if (
                isinstance(row, list)
                and len(row) >= 5
                and all(isinstance(cell, str) for cell in row[:5])
            ):
                yield row[0], row[4], row[3]


def parse_vulnerabilities(text: str) -> ParsedOutput:
    parsed = ParsedOutput()
    for value in iter_json_values(text):
        for name, vuln_id, advisory in _safety_triples(value):
            parsed.add_finding(name, Severity.MEDIUM, Finding(vuln_id, advisory))
    return parsed


class PythonProbe(Probe):
    ecosystem = Ecosystem.PYTHON
    manifest = "requirements.txt"

    def outdated_command(self, ctx: ProbeContext) -> str:
        return f"{shlex.quote(find_python(ctx))} -m {PIP_OUTDATED}"

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool("safety", "Install it with: pip install safety")
        return SAFETY_CHECK

    def parse_outdated(self, text: str) -> ParsedOutput:
        return parse_outdated(text)

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        return parse_vulnerabilities(text)


register_probe(PythonProbe())
