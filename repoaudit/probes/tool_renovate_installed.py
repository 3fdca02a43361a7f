"""Renovate configured for dependency updates."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import DEPENDENCY_UPDATE_TOOL
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError
from repoaudit.probes._update_tools import tool_findings


PROBE = "toolRenovateInstalled"
CHECKS = (DEPENDENCY_UPDATE_TOOL,)

TOOL_NAME = "RenovateBot"


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    return tool_findings(bundle or DefinitionBundle.default(), PROBE, raw, TOOL_NAME), PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
