"""Composer probe: ``composer outdated`` and ``composer audit``."""

from __future__ import annotations

from depstatus.models import Ecosystem, Finding, PackageRecord, ParsedOutput, Severity
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.jsonscan import json_objects, string_field
from depstatus.probes.registry import register_probe

COMPOSER_OUTDATED = "composer outdated --format=json --direct"
COMPOSER_AUDIT = "composer audit --format=json"

_INSTALL_HINT = "Install it from https://getcomposer.org/download/"

# Update markers composer prints between the installed and latest version.
_STATUS_MARKERS = {"!", "~", "="}


def _parse_outdated_text(text: str) -> ParsedOutput:
    parsed = ParsedOutput()
    for line in text.splitlines():
        parts = line.split()
        if not parts or parts[0] == "Name" or "/" not in parts[0]:
            continue
        versions = [p for p in parts[1:] if p not in _STATUS_MARKERS]
        if len(versions) < 2:
            continue
        parsed.add_package(PackageRecord(parts[0], versions[0], versions[1]))
    return parsed


def parse_outdated(text: str) -> ParsedOutput:
    """Parse ``installed`` entries; fall back to the table format when none parse."""
    parsed = ParsedOutput()
    for obj in json_objects(text):
        name = string_field(obj, "name")
        version = string_field(obj, "version")
        latest = string_field(obj, "latest")
        if name and version and latest:
            parsed.add_package(PackageRecord(name, version, latest))
    if not parsed:
        return _parse_outdated_text(text)
    return parsed


def parse_vulnerabilities(text: str) -> ParsedOutput:
    parsed = ParsedOutput()
    seen: set[tuple[str, str, str]] = set()
    for obj in json_objects(text):
        package = string_field(obj, "packageName", "package")
        title = string_field(obj, "title")
        if not package or not title:
            continue
        advisory_id = string_field(obj, "advisoryId", "cve", "id") or ""
        key = (package, advisory_id, title)
        if key in seen:
            continue
        seen.add(key)
        parsed.add_finding(package, Severity.parse(obj.get("severity")), Finding(advisory_id, title))
    return parsed


class ComposerProbe(Probe):
    ecosystem = Ecosystem.COMPOSER
    manifest = "composer.json"

    def outdated_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool("composer", _INSTALL_HINT)
        return COMPOSER_OUTDATED

    def vulnerability_command(self, ctx: ProbeContext) -> str:
        ctx.require_tool("composer", _INSTALL_HINT)
        return COMPOSER_AUDIT

    def parse_outdated(self, text: str) -> ParsedOutput:
        return parse_outdated(text)

    def parse_vulnerabilities(self, text: str) -> ParsedOutput:
        return parse_vulnerabilities(text)


register_probe(ComposerProbe())
