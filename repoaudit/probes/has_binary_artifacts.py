"""Binary artifacts checked into the repository."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import BINARY_ARTIFACTS
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasBinaryArtifacts"
CHECKS = (BINARY_ARTIFACTS,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    findings = [
        Finding.new_with(bundle, PROBE, "binary artifact detected", f.location(), Outcome.TRUE)
        for f in raw.binary_artifacts.files
    ]
    if not findings:
        findings.append(
            Finding.new_with(bundle, PROBE, "Repository does not have binary artifacts.", None, Outcome.FALSE)
        )
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
