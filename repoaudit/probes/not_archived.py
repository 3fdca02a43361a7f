"""Repository is not archived."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import MAINTAINED
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "notArchived"
CHECKS = (MAINTAINED,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    archived = raw.maintained.archived
    if archived is None:
        f = Finding.new_with(bundle, PROBE, "archived status not available", None, Outcome.NOT_AVAILABLE)
    elif archived:
        f = Finding.new_with(bundle, PROBE, "Repository is archived.", None, Outcome.FALSE)
    else:
        f = Finding.new_with(bundle, PROBE, "Repository is not archived.", None, Outcome.TRUE)
    return [f], PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
