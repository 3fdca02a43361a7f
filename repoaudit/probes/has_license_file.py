"""License file present."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import LICENSE
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasLicenseFile"
CHECKS = (LICENSE,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    license_files = raw.license.license_files
    if not license_files:
        f = Finding.new_with(bundle, PROBE, "project does not have a license file", None, Outcome.FALSE)
        return [f], PROBE

    findings = [
        Finding.new_with(bundle, PROBE, "project has a license file", lf.file.location(), Outcome.TRUE)
        for lf in license_files
    ]
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
