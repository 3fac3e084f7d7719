"""Cargo probe: ``cargo outdated`` and ``cargo audit`` (both cargo extensions)."""

from __future__ import annotations

from depstatus.models import Ecosystem, Finding, PackageRecord, ParsedOutput, Severity
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.jsonscan import json_objects, string_field
from depstatus.probes.registry import register_probe

CARGO_OUTDATED = "cargo outdated --format=json"
CARGO_AUDIT = "cargo audit --json"


def parse_outdated(text: str) -> ParsedOutput:
    """Parse ``dependencies`` entries, keeping those whose project version lags latest."""
    parsed = ParsedOutput()
    for obj in json_objects(text):
        name = string_field(obj, "name")
        project = string_field(obj, "project")
        latest = string_field(obj, "latest")
        if name and project and latest and project != latest:
            parsed.add_package(PackageRecord(name, project, latest))
    return parsed


def parse_vulnerabilities(text: str) -> ParsedOutput:
    """Collect advisories from ``cargo audit --json``.

    Advisory objects carry ``package`` as a plain crate name (the enclosing
    entry's ``package`` is an object and is skipped). Informational advisories
    such as "unmaintained" warnings are not vulnerabilities.
    """
    parsed = ParsedOutput()
    seen: set[tuple[str, str]] = set()
    for obj in json_objects(text):
        package = string_field(obj, "package")
        title = string_field(obj, "title")
        if not package or not title or obj.get("informational"):
            continue
        advisory_id = string_field(obj, "id") or ""
        if (package, advisory_id or title) in seen:
            continue
        seen.add((package, advisory_id or title))
        parsed.add_finding(package, Severity.parse(obj.get("severity")), Finding(advisory_id, title))
    return parsed


class CargoProbe(Probe):
    ecosystem = Ecosystem.CARGO
    manifest = "Cargo.toml"

    def outdated_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool("cargo", "Install Rust from https://rustup.rs")
        ctx.require_tool("cargo-outdated", "Install it with: cargo install cargo-outdated")
        return CARGO_OUTDATED

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool("cargo", "Install Rust from https://rustup.rs")
        ctx.require_tool("cargo-audit", "Install it with: cargo install cargo-audit")
        return CARGO_AUDIT

    def parse_outdated(self, text: str) -> ParsedOutput:
        return parse_outdated(text)

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        return parse_vulnerabilities(text)


register_probe(CargoProbe())
