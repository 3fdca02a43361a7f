"""
Dependencies pinned by hash.

Emits one finding per dependency found in workflows, Dockerfiles and
scripts, plus one ERROR finding per file that could only be partially
analyzed. Unpinned dependencies get remediation text filled with the
repository and branch from the snapshot metadata.
"""

from typing import Dict, List, Optional, Tuple

from repoaudit.core.checks import PINNED_DEPENDENCIES
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import Finding, Outcome
from repoaudit.core.raw import Dependency, DependencyUseType, RawResults
from repoaudit.errors import NilSnapshotError, ProbeError


PROBE = "pinsDependencies"
CHECKS = (PINNED_DEPENDENCIES,)

DEPENDENCY_TYPE = "dependencyType"

# Snapshot metadata keys substituted into the remediation text.
METADATA_KEYS = ("repo", "branch")

GITHUB_OWNERS = ("actions/", "github/")


def _label(dep: Dependency) -> str:
    if dep.type == DependencyUseType.GH_ACTION:
        owned = bool(dep.name) and dep.name.lower().startswith(GITHUB_OWNERS)
        owner = "GitHub-owned" if owned else "third-party"
        return f"{owner} {dep.type.value}"
    return dep.type.value


def _metadata(raw: RawResults) -> Dict[str, str]:
    return {key: raw.metadata[key] for key in METADATA_KEYS if key in raw.metadata}


def _dependency_finding(bundle, dep: Dependency, metadata: Dict[str, str]) -> Finding:
    if dep.location is None:
        if dep.msg is None:
            raise ProbeError(f"{PROBE}: dependency {dep.name!r} has neither a location nor a message")
        return Finding.new_with(bundle, PROBE, dep.msg, None, Outcome.NOT_APPLICABLE)

    location = dep.location.location()
    if dep.msg is not None:
        return Finding.new_with(bundle, PROBE, dep.msg, location, Outcome.NOT_APPLICABLE)
    if dep.pinned is None:
        return Finding.new_with(
            bundle, PROBE, f"{dep.location.path} has empty Pinned field", location, Outcome.NOT_APPLICABLE
        )

    label = _label(dep)
    if not dep.pinned:
        f = Finding.new_with(bundle, PROBE, f"{label} not pinned by hash", location, Outcome.FALSE)
        f.with_remediation_metadata(metadata)
    else:
        f = Finding.new_with(bundle, PROBE, f"{label} is pinned", location, Outcome.TRUE)
    return f.with_value(DEPENDENCY_TYPE, dep.type.value)


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()
    data = raw.pinning_dependencies

    findings: List[Finding] = []
    for element_error in data.processing_errors:
        findings.append(Finding.new_with(
            bundle, PROBE,
            f"Possibly incomplete results: {element_error.error}",
            element_error.location,
            Outcome.ERROR,
        ))

    metadata = _metadata(raw)
    for dep in data.dependencies:
        findings.append(_dependency_finding(bundle, dep, metadata))

    if not findings:
        findings.append(Finding.new_with(bundle, PROBE, "no dependencies found", None, Outcome.NOT_AVAILABLE))
    return findings, PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
