"""Security policy file present."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import SECURITY_POLICY
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "securityPolicyPresent"
CHECKS = (SECURITY_POLICY,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    policy_files = raw.security_policy.policy_files
    if not policy_files:
        f = Finding.new_with(bundle, PROBE, "no security policy file detected", None, Outcome.FALSE)
        return [f], PROBE

    findings = []
    for policy in policy_files:
        f = Finding.new_with(
            bundle, PROBE, "security policy file detected", policy.file.location(), Outcome.TRUE
        )
        f.with_value("informationCount", str(len(policy.information)))
        findings.append(f)
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
