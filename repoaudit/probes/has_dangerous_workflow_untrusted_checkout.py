"""Privileged workflows that check out untrusted pull request code."""

from typing import List, Optional, Tuple

from repoaudit.core.checks import DANGEROUS_WORKFLOW
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import DangerousWorkflowType, RawResults
from repoaudit.errors import NilSnapshotError


PROBE = "hasDangerousWorkflowUntrustedCheckout"
CHECKS = (DANGEROUS_WORKFLOW,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()
    data = raw.dangerous_workflow

    if data.num_workflows == 0:
        f = Finding.new_with(bundle, PROBE, "Project does not have any workflows.", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    findings: List[Finding] = []
    for workflow in data.workflows:
        if workflow.type != DangerousWorkflowType.UNTRUSTED_CHECKOUT:
            continue
        f = Finding.new_with(
            bundle, PROBE,
            f"untrusted code checkout '{workflow.file.snippet}'",
            workflow.file.location(),
            Outcome.TRUE,
        )
        if workflow.job is not None and workflow.job.name:
            f.with_value("job", workflow.job.name)
        findings.append(f)

    if not findings:
        f = Finding.new_with(
            bundle, PROBE,
            "Project does not have workflow(s) with untrusted checkout.",
            None, Outcome.FALSE,
        )
        findings.append(f)
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
