"""
Finding data structures for repoaudit.

This module defines the outcome of a probe, the optional location and
remediation attached to it, and the Finding itself together with its
builder chain.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Dict, Any, Iterable, Mapping
import json

from repoaudit.errors import RemediationMissingError


class Outcome(Enum):
    """Verdict of a probe for one finding."""
    FALSE = "False"
    NOT_AVAILABLE = "NotAvailable"
    ERROR = "Error"
    TRUE = "True"
    NOT_SUPPORTED = "NotSupported"
    NOT_APPLICABLE = "NotApplicable"

    # Legacy names kept for older probe code.
    NEGATIVE = "False"
    POSITIVE = "True"

    def _rank(self) -> int:
        order = [
            Outcome.FALSE,
            Outcome.NOT_AVAILABLE,
            Outcome.ERROR,
            Outcome.TRUE,
            Outcome.NOT_SUPPORTED,
            Outcome.NOT_APPLICABLE,
        ]
        return order.index(self)

    def worse_than(self, other: "Outcome") -> bool:
        """Return True if this outcome ranks worse than ``other``."""
        return self._rank() < other._rank()

    def __lt__(self, other):
        if not isinstance(other, Outcome):
            return NotImplemented
        return self.worse_than(other)

    def __le__(self, other):
        return self == other or self < other


def worst_outcome(findings: Iterable["Finding"]) -> Optional[Outcome]:
    """Pick the worst outcome across findings, or None when there are none."""
    worst: Optional[Outcome] = None
    for finding in findings:
        if worst is None or finding.outcome.worse_than(worst):
            worst = finding.outcome
    return worst


class FileType(Enum):
    """Kind of artifact a location points at."""
    NONE = "none"
    SOURCE = "source"
    BINARY = "binary"
    TEXT = "text"
    URL = "url"


class RemediationEffort(Enum):
    """Estimated effort needed to remediate a finding."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class Location:
    """Where a finding was observed. Lines are 1-based and inclusive."""
    path: str
    type: FileType = FileType.NONE
    line_start: Optional[int] = None
    line_end: Optional[int] = None
    snippet: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = FileType(self.type)
        if self.line_start is not None and self.line_start < 1:
            raise ValueError(f"line_start must be >= 1, got {self.line_start}")
        if self.line_end is not None:
            if self.line_start is None:
                raise ValueError("line_end given without line_start")
            if self.line_start > self.line_end:
                raise ValueError(
                    f"line_start ({self.line_start}) is after line_end ({self.line_end})"
                )

    def __str__(self) -> str:
        if self.line_start is None:
            return self.path
        return f"{self.path}:{self.line_start}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "path": self.path,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "snippet": self.snippet,
        }


@dataclass
class Remediation:
    """Guidance for fixing a finding: human text, markdown, optional patch."""
    effort: RemediationEffort
    text: str = ""
    markdown: str = ""
    patch: Optional[str] = None

    def copy(self) -> "Remediation":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "effort": self.effort.value,
            "text": self.text,
            "markdown": self.markdown,
        }
        if self.patch is not None:
            result["patch"] = self.patch
        return result


@dataclass
class Finding:
    """
    One output unit of a probe.

    Findings are created from a probe definition with :meth:`new` and then
    shaped with the ``with_*`` builders, each of which mutates the finding
    and returns it so calls can be chained::

        f = Finding.new(bundle, "testsRunInCI").with_message("...").with_outcome(Outcome.TRUE)

    The remediation copied from the definition only survives while the
    outcome is the one the definition asks remediation for (``FALSE``
    unless stated otherwise).
    """
    probe: str
    outcome: Outcome
    message: str = ""
    location: Optional[Location] = None
    remediation: Optional[Remediation] = None
    values: Dict[str, str] = field(default_factory=dict)
    remediate_on: Outcome = field(default=Outcome.FALSE, repr=False, compare=False)

    @classmethod
    def new(cls, bundle, probe_id: str) -> "Finding":
        """
        Create a finding seeded from the probe's definition.

        Args:
            bundle: A DefinitionBundle (anything with ``get(probe_id)``).
            probe_id: Identifier of the probe.

        Raises:
            DefinitionNotFoundError: If the bundle has no such probe.
        """
        definition = bundle.get(probe_id)
        remediation = definition.remediation.copy() if definition.remediation else None
        return cls(
            probe=definition.id,
            outcome=definition.remediate_on_outcome,
            remediation=remediation,
            remediate_on=definition.remediate_on_outcome,
        )

    @classmethod
    def new_with(
        cls,
        bundle,
        probe_id: str,
        message: str,
        location: Optional[Location],
        outcome: Outcome,
    ) -> "Finding":
        """Create a finding and set message, location and outcome in one call."""
        return (
            cls.new(bundle, probe_id)
            .with_message(message)
            .with_location(location)
            .with_outcome(outcome)
        )

    def with_message(self, message: str) -> "Finding":
        self.message = message
        return self

    def with_location(self, location: Optional[Location]) -> "Finding":
        """Attach a location and substitute it into the remediation text."""
        from repoaudit.remediation.templater import render

        self.location = location
        if self.remediation is not None and location is not None:
            self.remediation = render(self.remediation, location=location)
        return self

    def with_outcome(self, outcome: Outcome) -> "Finding":
        """Set the outcome, dropping remediation unless it still applies."""
        self.outcome = outcome
        if outcome != self.remediate_on:
            self.remediation = None
        return self

    def with_patch(self, patch: str) -> "Finding":
        if self.remediation is None:
            raise RemediationMissingError(
                f"{self.probe}: cannot attach a patch to a finding without remediation"
            )
        self.remediation.patch = patch
        return self

    def with_remediation_metadata(self, values: Mapping[str, str]) -> "Finding":
        """Substitute ``${{ key }}`` placeholders in the remediation text."""
        from repoaudit.remediation.templater import render

        if self.remediation is not None:
            self.remediation = render(self.remediation, values=values)
        return self

    def with_value(self, key: str, value: str) -> "Finding":
        self.values[key] = value
        return self

    def with_values(self, values: Mapping[str, str]) -> "Finding":
        for key, value in values.items():
            self.values[key] = value
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary."""
        result: Dict[str, Any] = {
            "probe": self.probe,
            "outcome": self.outcome.value,
            "message": self.message,
        }
        if self.location:
            result["location"] = self.location.to_dict()
        if self.remediation:
            result["remediation"] = self.remediation.to_dict()
        if self.values:
            result["values"] = dict(self.values)
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
