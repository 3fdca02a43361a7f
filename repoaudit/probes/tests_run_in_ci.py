"""
Tests run in CI.

For each recently merged pull request, looks for a successful commit status
or check run at its head commit whose name identifies a CI test system.
"""

from typing import List, Optional, Tuple

from repoaudit.core.checks import CI_TESTS
from repoaudit.core.definitions import DefinitionBundle
from repoaudit.core.findings import FileType, Finding, Location, Outcome
from repoaudit.core.raw import RawResults, RevisionCIInfo
from repoaudit.errors import NilSnapshotError


PROBE = "testsRunInCI"
CHECKS = (CI_TESTS,)

# Substrings of status contexts and check run apps that denote CI tests.
CI_SYSTEM_PATTERNS = [
    "appveyor",
    "buildkite",
    "circleci",
    "e2e",
    "github-actions",
    "jenkins",
    "mergeable",
    "packit-as-a-service",
    "semaphoreci",
    "test",
    "travis-ci",
    "flutter-dashboard",
    "cirrus-ci",
    "azure-pipelines",
    "ci/woodpecker",
    "vstfs:///build/build",
]


def is_test(name: str) -> bool:
    """Whether a status context or app slug names a CI test system."""
    name = name.lower()
    return any(pattern in name for pattern in CI_SYSTEM_PATTERNS)


def _url_location(url: str) -> Optional[Location]:
    return Location(path=url, type=FileType.URL) if url else None


def _ci_finding(bundle, info: RevisionCIInfo) -> Finding:
    for status in info.statuses:
        if status.state != "success" or not is_test(status.context):
            continue
        return Finding.new_with(
            bundle, PROBE,
            f"CI test found: pr: {info.head_sha}, context: {status.context}",
            _url_location(status.url),
            Outcome.TRUE,
        )

    for check_run in info.check_runs:
        if check_run.status != "completed" or check_run.conclusion != "success":
            continue
        if not is_test(check_run.app_slug):
            continue
        return Finding.new_with(
            bundle, PROBE,
            f"CI test found: pr: {info.head_sha}, context: {check_run.app_slug}",
            _url_location(check_run.url),
            Outcome.TRUE,
        )

    return Finding.new_with(
        bundle, PROBE,
        f"merged PR {info.pull_request_number} without CI test at HEAD: {info.head_sha}",
        None,
        Outcome.FALSE,
    )


def run(raw: Optional[RawResults], bundle: Optional[DefinitionBundle] = None) -> Tuple[List[Finding], str]:
    if raw is None:
        raise NilSnapshotError(PROBE)
    bundle = bundle or DefinitionBundle.default()

    ci_info = raw.ci_tests.ci_info
    if not ci_info:
        f = Finding.new_with(bundle, PROBE, "no pull requests found", None, Outcome.NOT_APPLICABLE)
        return [f], PROBE

    return [_ci_finding(bundle, info) for info in ci_info], PROBE


def register(registry):
    registry.register(PROBE, run, CHECKS)
