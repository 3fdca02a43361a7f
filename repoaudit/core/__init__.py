"""Core data structures: findings, definitions, the probe registry and runner."""

from repoaudit.core.findings import (
    Finding, Outcome, Location, Remediation, RemediationEffort, FileType, worst_outcome
)
from repoaudit.core.definitions import Definition, DefinitionBundle
from repoaudit.core.registry import Probe, ProbeRegistry, default_registry
from repoaudit.core.engine import ProbeRunner, ProbeResult

__all__ = [
    "Finding",
    "Outcome",
    "Location",
    "Remediation",
    "RemediationEffort",
    "FileType",
    "worst_outcome",
    "Definition",
    "DefinitionBundle",
    "Probe",
    "ProbeRegistry",
    "default_registry",
    "ProbeRunner",
    "ProbeResult",
]
