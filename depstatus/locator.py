"""Manifest locator — tracks known manifest files and caches existence checks."""

from __future__ import annotations

import itertools
import os
from pathlib import Path

import structlog

from depstatus.manifests import MANIFEST_FILES, ecosystem_for_file
from depstatus.models import Ecosystem, ManifestEntry

log = structlog.get_logger("depstatus.locator")


class ManifestLocator:
    """Derive per-ecosystem manifest entries from the set of known files.

    The set of known files is the equivalent of an editor's open buffers:
    :meth:`track` and :meth:`untrack` change it and invalidate every cache.
    The entry cache is rebuilt lazily and as a whole on the next
    :meth:`locate`; the existence memo is only cleared by :meth:`invalidate`.
    """

    def __init__(self, project_root: str | Path) -> None:
        self.project_root = Path(project_root).resolve()
        self._files: dict[int, str] = {}
        self._ids = itertools.count(1)
        self._entries: dict[Ecosystem, list[ManifestEntry]] | None = None
        self._exists: dict[str, bool] = {}

    # ── file set ─────────────────────────────────────────────────────────

    def track(self, path: str | Path) -> int:
        """Add *path* to the known files and return its container id."""
        absolute = str(Path(path).resolve())
        for container_id, known in self._files.items():
            if known == absolute:
                return container_id
        container_id = next(self._ids)
        self._files[container_id] = absolute
        self.invalidate()
        return container_id

    def untrack(self, container_id: int) -> None:
        if self._files.pop(container_id, None) is not None:
            self.invalidate()

    def discover(self) -> list[int]:
        """Track every manifest present in the project root."""
        ids = []
        for file_name in MANIFEST_FILES.values():
            path = self.project_root / file_name
            if path.is_file():
                ids.append(self.track(path))
        return ids

    def path_of(self, container_id: int) -> str | None:
        return self._files.get(container_id)

    # ── caches ───────────────────────────────────────────────────────────

    def locate(self, ecosystem: Ecosystem) -> list[ManifestEntry]:
        if self._entries is None:
            self._entries = self._build()
        return list(self._entries.get(ecosystem, []))

    def invalidate(self) -> None:
        self._entries = None
        self._exists = {}
        log.debug("locator.invalidated")

    def exists(self, path: str | Path) -> bool:
        key = str(path)
        if key not in self._exists:
            self._exists[key] = os.path.exists(key)
        return self._exists[key]

    def _build(self) -> dict[Ecosystem, list[ManifestEntry]]:
        entries: dict[Ecosystem, list[ManifestEntry]] = {eco: [] for eco in Ecosystem}
        for container_id, absolute in self._files.items():
            file_name = os.path.basename(absolute)
            ecosystem = ecosystem_for_file(file_name)
            if ecosystem is None:
                continue
            entries[ecosystem].append(
                ManifestEntry(
                    container_id=container_id,
                    absolute_path=absolute,
                    file_name=file_name,
                )
            )
        log.debug(
            "locator.rebuilt",
            manifests={eco.value: len(found) for eco, found in entries.items() if found},
        )
        return entries
