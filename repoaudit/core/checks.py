"""Names of the checks that probes roll up into."""

from typing import Iterable, List, Optional


BINARY_ARTIFACTS = "Binary-Artifacts"
BRANCH_PROTECTION = "Branch-Protection"
CI_TESTS = "CI-Tests"
CII_BEST_PRACTICES = "CII-Best-Practices"
CODE_REVIEW = "Code-Review"
CONTRIBUTORS = "Contributors"
DANGEROUS_WORKFLOW = "Dangerous-Workflow"
DEPENDENCY_UPDATE_TOOL = "Dependency-Update-Tool"
FUZZING = "Fuzzing"
LICENSE = "License"
MAINTAINED = "Maintained"
PACKAGING = "Packaging"
PINNED_DEPENDENCIES = "Pinned-Dependencies"
SAST = "SAST"
SBOM = "SBOM"
SECURITY_POLICY = "Security-Policy"
SIGNED_RELEASES = "Signed-Releases"
TOKEN_PERMISSIONS = "Token-Permissions"
VULNERABILITIES = "Vulnerabilities"
WEBHOOKS = "Webhooks"

ALL_CHECKS: List[str] = [
    BINARY_ARTIFACTS,
    BRANCH_PROTECTION,
    CI_TESTS,
    CII_BEST_PRACTICES,
    CODE_REVIEW,
    CONTRIBUTORS,
    DANGEROUS_WORKFLOW,
    DEPENDENCY_UPDATE_TOOL,
    FUZZING,
    LICENSE,
    MAINTAINED,
    PACKAGING,
    PINNED_DEPENDENCIES,
    SAST,
    SBOM,
    SECURITY_POLICY,
    SIGNED_RELEASES,
    TOKEN_PERMISSIONS,
    VULNERABILITIES,
    WEBHOOKS,
]


def canonical_check(name: str, known: Optional[Iterable[str]] = None) -> Optional[str]:
    """Return the canonical spelling of a check name, matching case-insensitively."""
    wanted = name.strip().lower()
    for check in (ALL_CHECKS if known is None else known):
        if check.lower() == wanted:
            return check
    return None
