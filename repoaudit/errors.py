"""
Exception hierarchy for repoaudit.

Configuration errors (unknown probes, duplicate registration, invalid
definitions or exemption configs) are raised eagerly. Input errors are
raised from a probe's ``run``. Missing evidence is never an exception:
probes report it as a NOT_APPLICABLE or NOT_AVAILABLE finding.
"""


class RepoAuditError(Exception):
    """Base class for all repoaudit errors."""


class ProbeError(RepoAuditError):
    """A probe failed structurally while building its findings."""


class NilSnapshotError(ProbeError):
    """A probe was invoked without a raw results snapshot."""

    def __init__(self, probe_id: str = ""):
        self.probe_id = probe_id
        super().__init__(f"{probe_id or 'probe'}: raw results snapshot is None")


class ProbeNotFoundError(RepoAuditError):
    """No probe is registered under the requested identifier."""


class DuplicateProbeError(RepoAuditError):
    """A probe identifier was registered twice."""


class DefinitionNotFoundError(RepoAuditError):
    """No definition bundle exists for a probe identifier."""


class DefinitionInvalidError(RepoAuditError):
    """A definition bundle exists but does not validate."""


class RemediationMissingError(RepoAuditError):
    """A patch was attached to a finding that has no remediation."""


class ExemptionConfigError(RepoAuditError):
    """The maintainer exemption configuration is not valid."""


class InvalidCheckError(ExemptionConfigError):
    """A check name is not one of the registered checks."""

    def __init__(self, check: str):
        self.check = check
        super().__init__(f"check is not valid: {check}")


class InvalidReasonError(ExemptionConfigError):
    """An exemption reason is outside the closed set of reasons."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"reason is not valid: {reason}")
