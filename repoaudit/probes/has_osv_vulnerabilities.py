"""Known vulnerabilities reported by OSV."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import VULNERABILITIES
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasOSVVulnerabilities"
CHECKS = (VULNERABILITIES,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    findings = []
    for vuln in raw.vulnerabilities.vulnerabilities:
        ids = " / ".join([vuln.id, *vuln.aliases])
        f = Finding.new_with(bundle, PROBE, f"Project is vulnerable to: {ids}", None, Outcome.TRUE)
        f.with_remediation_metadata({"osvid": vuln.id})
        findings.append(f)

    if not findings:
        findings.append(Finding.new_with(
            bundle, PROBE, "Project does not contain OSV vulnerabilities", None, Outcome.FALSE
        ))
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
