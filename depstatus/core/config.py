"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from depstatus.models import Ecosystem, ecosystems_from_names

DEFAULT_VENV_DIRS = (".venv", "venv", "env")


def _env_list(key: str) -> list[str] | None:
    raw = os.environ.get(key)
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    project_root: Path = field(default_factory=Path.cwd)
    venv_dirs: tuple[str, ...] = DEFAULT_VENV_DIRS
    ecosystems: tuple[Ecosystem, ...] = tuple(Ecosystem)

    @classmethod
    def from_env(cls, project_root: str | Path | None = None) -> Settings:
        """Build settings from ``DEPSTATUS_*`` variables.

        *project_root* (e.g. from ``--root``) takes precedence over
        ``DEPSTATUS_PROJECT_ROOT``.
        """
        root = project_root or os.environ.get("DEPSTATUS_PROJECT_ROOT") or Path.cwd()
        settings = cls(project_root=Path(root).resolve())

        venv_dirs = _env_list("DEPSTATUS_VENV_DIRS")
        if venv_dirs:
            settings.venv_dirs = tuple(venv_dirs)

        names = _env_list("DEPSTATUS_ECOSYSTEMS")
        if names:
            settings.ecosystems = tuple(ecosystems_from_names(names))

        return settings
