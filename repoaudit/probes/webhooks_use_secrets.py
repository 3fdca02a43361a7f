"""Webhooks authenticate their deliveries with a secret."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import WEBHOOKS
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import FileType, Finding, Location, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "webhooksUseSecrets"
CHECKS = (WEBHOOKS,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    webhooks = raw.webhooks.webhooks
    if not webhooks:
        f = Finding.new_with(bundle, PROBE, "Repository does not have webhooks.", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    findings = []
    for hook in webhooks:
        location = Location(path=hook.path, type=FileType.URL)
        if hook.uses_auth_secret:
            f = Finding.new_with(bundle, PROBE, "Webhook with token authorization found.", location, Outcome.TRUE)
        else:
            f = Finding.new_with(bundle, PROBE, "Webhook without token authorization found.", location, Outcome.FALSE)
        findings.append(f.with_value("id", str(hook.id)))
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
