"""
Raw results snapshot.

The collection layer gathers repository facts into a :class:`RawResults`
before any probe runs. Every sub-structure defaults to empty; an empty
structure means the evidence is not available, which probes report as a
finding rather than an error. Probes only read from the snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from repoaudit.core.findings import FileType, Location


@dataclass(frozen=True)
class File:
    """A file (or part of one) that some evidence points at."""
    path: str
    type: FileType = FileType.SOURCE
    offset: int = 0
    end_offset: int = 0
    snippet: str = ""
    file_size: int = 0

    def location(self) -> Location:
        """Convert to a finding Location; offsets of 0 mean "no line"."""
        line_start = self.offset or None
        line_end = self.end_offset if line_start and self.end_offset >= self.offset else None
        return Location(
            path=self.path,
            type=self.type,
            line_start=line_start,
            line_end=line_end,
            snippet=self.snippet or None,
        )


@dataclass(frozen=True)
class WorkflowJob:
    name: Optional[str] = None
    id: Optional[str] = None


class DangerousWorkflowType(Enum):
    SCRIPT_INJECTION = "scriptInjection"
    UNTRUSTED_CHECKOUT = "untrustedCheckout"


@dataclass(frozen=True)
class DangerousWorkflow:
    """
    One dangerous pattern found in a CI workflow.

    For script injection, ``file.offset`` is a line inside the ``run`` step
    and ``file.snippet`` is the expression between ``${{`` and ``}}``.
    """
    type: DangerousWorkflowType
    file: File
    job: Optional[WorkflowJob] = None


@dataclass(frozen=True)
class DangerousWorkflowData:
    workflows: Tuple[DangerousWorkflow, ...] = ()
    num_workflows: int = 0
    # Workflow file contents by path, used to synthesize patches.
    contents: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "contents", MappingProxyType(dict(self.contents)))


@dataclass(frozen=True)
class CheckRun:
    status: str = ""
    conclusion: str = ""
    url: str = ""
    app_slug: str = ""


@dataclass(frozen=True)
class Status:
    state: str = ""
    context: str = ""
    url: str = ""
    target_url: str = ""


@dataclass(frozen=True)
class RevisionCIInfo:
    head_sha: str
    pull_request_number: int = 0
    check_runs: Tuple[CheckRun, ...] = ()
    statuses: Tuple[Status, ...] = ()


@dataclass(frozen=True)
class CITestData:
    ci_info: Tuple[RevisionCIInfo, ...] = ()


@dataclass(frozen=True)
class BinaryArtifactData:
    files: Tuple[File, ...] = ()


class LicenseAttribution(Enum):
    OTHER = "other"
    API = "repositoryAPI"
    HEURISTICS = "builtinHeuristics"


@dataclass(frozen=True)
class License:
    name: str = ""
    spdx_id: str = ""
    attribution: LicenseAttribution = LicenseAttribution.OTHER
    approved: bool = False


@dataclass(frozen=True)
class LicenseFile:
    license: License
    file: File


@dataclass(frozen=True)
class LicenseData:
    license_files: Tuple[LicenseFile, ...] = ()


class SecurityPolicyInformationType(Enum):
    EMAIL = "emailAddress"
    LINK = "httpLink"
    TEXT = "vulnDisclosureText"


@dataclass(frozen=True)
class SecurityPolicyInformation:
    type: SecurityPolicyInformationType
    match: str = ""
    line_number: int = 0


@dataclass(frozen=True)
class SecurityPolicyFile:
    file: File
    information: Tuple[SecurityPolicyInformation, ...] = ()


@dataclass(frozen=True)
class SecurityPolicyData:
    policy_files: Tuple[SecurityPolicyFile, ...] = ()


@dataclass(frozen=True)
class Webhook:
    path: str
    id: int = 0
    uses_auth_secret: bool = False


@dataclass(frozen=True)
class WebhooksData:
    webhooks: Tuple[Webhook, ...] = ()


class DependencyUseType(Enum):
    GH_ACTION = "GitHubAction"
    CONTAINER_IMAGE = "containerImage"
    DOWNLOAD_THEN_RUN = "downloadThenRun"
    GO_COMMAND = "goCommand"
    CHOCO_COMMAND = "chocoCommand"
    NPM_COMMAND = "npmCommand"
    PIP_COMMAND = "pipCommand"
    NUGET_COMMAND = "nugetCommand"


@dataclass(frozen=True)
class Dependency:
    type: DependencyUseType
    name: Optional[str] = None
    pinned_at: Optional[str] = None
    location: Optional[File] = None
    pinned: Optional[bool] = None
    msg: Optional[str] = None


@dataclass(frozen=True)
class ElementError:
    """A file or job whose evidence could only be partially collected."""
    error: str
    location: Location


@dataclass(frozen=True)
class PinningDependenciesData:
    dependencies: Tuple[Dependency, ...] = ()
    processing_errors: Tuple[ElementError, ...] = ()


@dataclass(frozen=True)
class Tool:
    name: str
    url: Optional[str] = None
    desc: Optional[str] = None
    files: Tuple[File, ...] = ()


@dataclass(frozen=True)
class DependencyUpdateToolData:
    tools: Tuple[Tool, ...] = ()


@dataclass(frozen=True)
class MaintainedData:
    archived: Optional[bool] = None


class BadgeLevel(Enum):
    UNKNOWN = "Unknown"
    NOT_FOUND = "NotFound"
    IN_PROGRESS = "InProgress"
    PASSING = "Passing"
    SILVER = "Silver"
    GOLD = "Gold"


@dataclass(frozen=True)
class CIIBestPracticesData:
    badge: BadgeLevel = BadgeLevel.UNKNOWN


@dataclass(frozen=True)
class Vulnerability:
    id: str
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VulnerabilitiesData:
    vulnerabilities: Tuple[Vulnerability, ...] = ()


@dataclass(frozen=True)
class RawResults:
    """Everything the collection layer knows about one repository."""
    binary_artifacts: BinaryArtifactData = field(default_factory=BinaryArtifactData)
    cii_best_practices: CIIBestPracticesData = field(default_factory=CIIBestPracticesData)
    ci_tests: CITestData = field(default_factory=CITestData)
    dangerous_workflow: DangerousWorkflowData = field(default_factory=DangerousWorkflowData)
    dependency_update_tool: DependencyUpdateToolData = field(default_factory=DependencyUpdateToolData)
    license: LicenseData = field(default_factory=LicenseData)
    maintained: MaintainedData = field(default_factory=MaintainedData)
    pinning_dependencies: PinningDependenciesData = field(default_factory=PinningDependenciesData)
    security_policy: SecurityPolicyData = field(default_factory=SecurityPolicyData)
    vulnerabilities: VulnerabilitiesData = field(default_factory=VulnerabilitiesData)
    webhooks: WebhooksData = field(default_factory=WebhooksData)
    # Repository metadata such as "repo" (owner/name) and "branch".
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
