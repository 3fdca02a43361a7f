"""
repoaudit

Probe execution and remediation for repository supply-chain audits.
Probes turn a snapshot of collected repository facts into findings,
attach remediation guidance, and roll up into named checks.
"""

__version__ = "0.4.0"
__author__ = "repoaudit maintainers"

from repoaudit.core.findings import Finding, Outcome, Location, Remediation
from repoaudit.core.raw import RawResults
from repoaudit.core.registry import ProbeRegistry, default_registry
from repoaudit.core.engine import ProbeRunner, ProbeResult
from repoaudit.config import RunnerConfig

__all__ = [
    "Finding",
    "Outcome",
    "Location",
    "Remediation",
    "RawResults",
    "ProbeRegistry",
    "default_registry",
    "ProbeRunner",
    "ProbeResult",
    "RunnerConfig",
]
