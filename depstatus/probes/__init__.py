"""Ecosystem probes — auto-registered on import."""

from depstatus.probes import (
    cargo,  # noqa: F401
    composer,  # noqa: F401
    go_mod,  # noqa: F401
    npm,  # noqa: F401
    python_pip,  # noqa: F401
)
from depstatus.probes.base import Probe, ProbeContext
from depstatus.probes.registry import PROBE_REGISTRY, get_probe

__all__ = ["PROBE_REGISTRY", "Probe", "ProbeContext", "get_probe"]
