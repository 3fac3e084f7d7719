"""depstatus: outdated and vulnerable dependency status across package ecosystems."""

__version__ = "0.1.0"

from depstatus.aggregator import Aggregator
from depstatus.locator import ManifestLocator
from depstatus.models import (
    CheckKind,
    CheckResult,
    Ecosystem,
    Finding,
    PackageRecord,
    Severity,
    Snapshot,
    VulnerabilityRecord,
)
from depstatus.runner import ProcessOutcome, ProcessRunner
from depstatus.service import DepStatusService, StatusReport

__all__ = [
    "Aggregator",
    "CheckKind",
    "CheckResult",
    "DepStatusService",
    "Ecosystem",
    "Finding",
    "ManifestLocator",
    "PackageRecord",
    "ProcessOutcome",
    "ProcessRunner",
    "Severity",
    "Snapshot",
    "StatusReport",
    "VulnerabilityRecord",
]
