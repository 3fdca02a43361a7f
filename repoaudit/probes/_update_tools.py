"""Shared logic of the dependency update tool probes."""

from typing import List

from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import RawResults


def tool_findings(bundle, probe_id: str, raw: RawResults, tool_name: str) -> List[Finding]:
    """One TRUE finding per configuration of ``tool_name``, or one FALSE finding."""
    findings = []
    for tool in raw.dependency_update_tool.tools:
        if tool.name != tool_name:
            continue
        location = tool.files[0].location() if tool.files else None
        f = Finding.new_with(bundle, probe_id, f"detected update tool: {tool.name}", location, Outcome.TRUE)
        findings.append(f.with_value("toolName", tool.name))

    if not findings:
        findings.append(Finding.new_with(bundle, probe_id, f"{tool_name} not detected", None, Outcome.FALSE))
    return findings
