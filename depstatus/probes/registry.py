"""Probe registry — one probe per ecosystem."""

from __future__ import annotations

from typing import TYPE_CHECKING

from depstatus.models import Ecosystem

if TYPE_CHECKING:
    from depstatus.probes.base import Probe

PROBE_REGISTRY: dict[Ecosystem, Probe] = {}


def register_probe(probe: Probe) -> None:
    """Register a probe instance by its ecosystem."""
    PROBE_REGISTRY[probe.ecosystem] = probe


def get_probe(ecosystem: Ecosystem) -> Probe:
    return PROBE_REGISTRY[ecosystem]
