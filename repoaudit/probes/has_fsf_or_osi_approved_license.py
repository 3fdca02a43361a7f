"""License recognized by the FSF or the OSI."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import LICENSE
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasFSFOrOSIApprovedLicense"
CHECKS = (LICENSE,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    license_files = raw.license.license_files
    if not license_files:
        f = Finding.new_with(bundle, PROBE, "project does not have a license file", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    for lf in license_files:
        if lf.license.approved:
            name = lf.license.spdx_id or lf.license.name
            f = Finding.new_with(
                bundle, PROBE, f"FSF or OSI recognized license: {name}", lf.file.location(), Outcome.TRUE
            )
            return [f], PROBE

    f = Finding.new_with(
        bundle, PROBE,
        "project license file does not contain an FSF or OSI license.",
        license_files[0].file.location(),
        Outcome.FALSE,
    )
    return [f], PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
