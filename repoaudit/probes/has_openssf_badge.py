"""OpenSSF best practices badge."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import CII_BEST_PRACTICES
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import BadgeLevel, RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasOpenSSFBadge"
CHECKS = (CII_BEST_PRACTICES,)

BADGE_LEVEL = "badgeLevel"


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    badge = raw.cii_best_practices.badge
    if badge == BadgeLevel.UNKNOWN:
        f = Finding.new_with(bundle, PROBE, "OpenSSF badge status not available", None, Outcome.NOT_AVAILABLE)
    elif badge == BadgeLevel.NOT_FOUND:
        f = Finding.new_with(bundle, PROBE, "Project does not have an OpenSSF badge.", None, Outcome.FALSE)
    else:
        f = Finding.new_with(
            bundle, PROBE, f"OpenSSF best practices badge found at {badge.value} level.", None, Outcome.TRUE
        ).with_value(BADGE_LEVEL, badge.value)
    return [f], PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
