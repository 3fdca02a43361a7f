"""
Permissive license.

Not part of any check: consumers use it to filter projects by license
family. Only the first detected license file is considered.
"""

from typing import List, Optional, Tuple

from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasPermissiveLicense"
CHECKS = ()

PERMISSIVE_LICENSES = {
    "Unlicense",
    "Beerware",
    "Apache-2.0",
    "MIT",
    "MIT-0",
    "0BSD",
    "BSD-1-Clause",
    "BSD-2-Clause",
    "BSD-2-Clause-Patent",
    "BSD-3-Clause",
    "BSD-3-Clause-Attribution",
    "BSD-3-Clause-Clear",
    "BSD-3-Clause-LBNL",
    "BSD-4-Clause",
    "BSD-Source-Code",
    "ISC",
    "Zlib",
    "PostgreSQL",
    "WTFPL",
    "CC0-1.0",
    "BSL-1.0",
}


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    license_files = raw.license.license_files
    if not license_files:
        f = Finding.new_with(bundle, PROBE, "project does not have a license file", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    first = license_files[0]
    spdx_id = first.license.spdx_id
    if spdx_id in PERMISSIVE_LICENSES:
        f = Finding.new_with(
            bundle, PROBE, f"found permissive license: {spdx_id}", first.file.location(), Outcome.TRUE
        ).with_value("spdxId", spdx_id)
    else:
        f = Finding.new_with(
            bundle, PROBE, "project does not have a permissive license", first.file.location(), Outcome.FALSE
        )
    return [f], PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
