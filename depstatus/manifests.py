"""Line grammars for manifest files, used to place per-line annotations."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator

from depstatus.models import Ecosystem, ManifestMatch

MANIFEST_FILES: dict[Ecosystem, str] = {
    Ecosystem.PYTHON: "requirements.txt",
    Ecosystem.GO: "go.mod",
    Ecosystem.NPM: "package.json",
    Ecosystem.COMPOSER: "composer.json",
    Ecosystem.CARGO: "Cargo.toml",
}

# flask==2.3.1, requests>=2.28,<3
_REQUIREMENT_RE = re.compile(r"^([\w\-.]+)[=<>~!]+([\w.\-]+)")

# github.com/pkg/errors v0.9.1 (bare, inside a require block, or after "require")
_GO_MODULE_RE = re.compile(r"^\s*(?:require\s+)?([\w.\-/]+)\s+v([\w.\-+]+)")

# "lodash": "^4.17.21"
_JSON_DEP_RE = re.compile(r'"([\w\-@/.]+)"\s*:\s*"[\^~]?([\w.\-]+)"')
_JSON_SECTION_RE = re.compile(r'"(dependencies|devDependencies|require|require-dev)"\s*:')
_JSON_SECTION_END_RE = re.compile(r"^\s*}")

# serde = "1.0" / serde = { version = "1.0", features = [...] }
_CARGO_DEP_RE = re.compile(
    r'^\s*([\w\-]+)\s*=\s*(?:"([^"]+)"|\{[^}]*?\bversion\s*=\s*"([^"]+)")'
)
_CARGO_TABLE_RE = re.compile(r"^\s*\[([^\]]+)\]")
_CARGO_DEP_TABLES = {"dependencies", "dev-dependencies", "build-dependencies"}


def _match(line_index: int, line: str, name: str, version: str) -> ManifestMatch:
    start = line.find(version)
    if start < 0:
        start, end = 0, 0
    else:
        end = start + len(version)
    return ManifestMatch(line_index=line_index, name=name, version=version, span=(start, end))


def parse_requirements(lines: Iterable[str]) -> Iterator[ManifestMatch]:
    for index, line in enumerate(lines):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        m = _REQUIREMENT_RE.match(line)
        if m:
            yield _match(index, line, m.group(1), m.group(2))


def parse_go_mod(lines: Iterable[str]) -> Iterator[ManifestMatch]:
    for index, line in enumerate(lines):
        if not line.strip() or line.lstrip().startswith("//"):
            continue
        m = _GO_MODULE_RE.match(line)
        if m and m.group(1) not in ("module", "go", "toolchain"):
            yield _match(index, line, m.group(1), "v" + m.group(2))


def parse_json_manifest(lines: Iterable[str]) -> Iterator[ManifestMatch]:
    """Dependency pairs inside package.json / composer.json dependency blocks."""
    in_section = False
    for index, line in enumerate(lines):
        if _JSON_SECTION_RE.search(line):
            in_section = True
            continue
        if _JSON_SECTION_END_RE.match(line):
            in_section = False
            continue
        if not in_section:
            continue
        m = _JSON_DEP_RE.search(line)
        if m:
            yield _match(index, line, m.group(1), m.group(2))


def parse_cargo_toml(lines: Iterable[str]) -> Iterator[ManifestMatch]:
    table: str | None = None
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        header = _CARGO_TABLE_RE.match(line)
        if header:
            table = header.group(1).strip()
            continue
        if table not in _CARGO_DEP_TABLES:
            continue
        m = _CARGO_DEP_RE.match(line)
        if m:
            yield _match(index, line, m.group(1), m.group(2) or m.group(3))


MANIFEST_PARSERS: dict[Ecosystem, Callable[[Iterable[str]], Iterator[ManifestMatch]]] = {
    Ecosystem.PYTHON: parse_requirements,
    Ecosystem.GO: parse_go_mod,
    Ecosystem.NPM: parse_json_manifest,
    Ecosystem.COMPOSER: parse_json_manifest,
    Ecosystem.CARGO: parse_cargo_toml,
}


def parse_manifest(ecosystem: Ecosystem, lines: Iterable[str]) -> list[ManifestMatch]:
    return list(MANIFEST_PARSERS[ecosystem](lines))


def ecosystem_for_file(file_name: str) -> Ecosystem | None:
    for ecosystem, manifest in MANIFEST_FILES.items():
        if file_name == manifest:
            return ecosystem
    return None
