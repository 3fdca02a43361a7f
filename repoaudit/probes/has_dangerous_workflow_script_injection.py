"""
Script injection in CI workflows.

Reports every ``run`` step that interpolates untrusted context such as an
issue title straight into a shell script. When the workflow text is
available, the finding carries a patch that moves the expression into a
workflow-level environment variable.
"""

from typing import List, Optional, Tuple

from repoaudit.core.checks import DANGEROUS_WORKFLOW
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import DangerousWorkflowType, RawResults
from repoaudit.errors import NilSnapshotError
from repoaudit.remediation.patch import PatchCache, synthesize_patch


PROBE = "hasDangerousWorkflowScriptInjection"
CHECKS = (DANGEROUS_WORKFLOW,)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()
    data = raw.dangerous_workflow

    if data.num_workflows == 0:
        f = Finding.new_with(bundle, PROBE, "Project does not have any workflows.", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    cache = PatchCache()
    findings: List[Finding] = []
    for workflow in data.workflows:
        if workflow.type != DangerousWorkflowType.SCRIPT_INJECTION:
            continue
        f = Finding.new_with(
            bundle, PROBE,
            f"script injection with untrusted input '{workflow.file.snippet}'",
            workflow.file.location(),
            Outcome.TRUE,
        )
        if workflow.job is not None and workflow.job.name:
            f.with_value("job", workflow.job.name)

        content = data.contents.get(workflow.file.path)
        if content is not None and f.remediation is not None:
            patch = synthesize_patch(
                workflow.file.path, content, workflow.file.offset, workflow.file.snippet, cache=cache
            )
            if patch is not None:
                f.with_patch(patch.diff)
        findings.append(f)

    if not findings:
        f = Finding.new_with(
            bundle, PROBE,
            "Project does not have dangerous workflow(s) with possibility of script injection.",
            None, Outcome.FALSE,
        )
        findings.append(f)
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
