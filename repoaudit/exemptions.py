"""
Maintainer exemptions.

Maintainers can annotate checks with a reason why a result should be read
differently, in the repository's configuration file::

    annotations:
      - checks:
          - binary-artifacts
        reasons:
          - reason: test-data

Exemptions are informational only: they add explanations next to a check's
result and never change an outcome or a score.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from repoaudit.core.checks import ALL_CHECKS
from repoaudit.errors import ExemptionConfigError, InvalidCheckError, InvalidReasonError


logger = logging.getLogger(__name__)


class Reason(Enum):
    """Closed set of reasons a maintainer can give."""
    TEST_DATA = "test-data"
    REMEDIATED = "remediated"
    NOT_APPLICABLE = "not-applicable"
    NOT_SUPPORTED = "not-supported"
    NOT_DETECTED = "not-detected"

    def doc(self) -> str:
        """Human-readable explanation of the reason."""
        return _REASON_DOCS[self]

    @classmethod
    def parse(cls, value: str) -> "Reason":
        try:
            return cls(value)
        except ValueError:
            raise InvalidReasonError(value) from None


_REASON_DOCS: Dict[Reason, str] = {
    Reason.TEST_DATA: "The files or code snippets are only used for test or example purposes.",
    Reason.REMEDIATED: "The dangerous files or code snippets are necessary but remediations were already applied.",
    Reason.NOT_APPLICABLE: "The check or probe is not applicable in this case.",
    Reason.NOT_SUPPORTED: "The check or probe is fulfilled but in a way that is not supported by repoaudit.",
    Reason.NOT_DETECTED: "The check or probe is fulfilled but in a way that is supported by repoaudit but it was not detected.",
}


@dataclass
class ReasonGroup:
    reason: str


@dataclass
class Annotation:
    """Checks sharing the same reasons."""
    checks: List[str] = field(default_factory=list)
    reasons: List[ReasonGroup] = field(default_factory=list)

    def covers(self, check_name: str) -> bool:
        return any(c.lower() == check_name.lower() for c in self.checks)

    def explanations(self) -> List[str]:
        return [Reason.parse(group.reason).doc() for group in self.reasons]


@dataclass
class ExemptionConfig:
    annotations: List[Annotation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExemptionConfig":
        """
        Build a config from parsed YAML.

        Raises:
            ExemptionConfigError: If the structure is not the expected one.
        """
        if not isinstance(data, dict):
            raise ExemptionConfigError("exemption config must be a mapping")

        annotations = []
        for entry in data.get("annotations") or []:
            if not isinstance(entry, dict):
                raise ExemptionConfigError(f"annotation must be a mapping, got {entry!r}")
            checks = entry.get("checks") or []
            reasons = entry.get("reasons") or []
            if not isinstance(checks, list) or not isinstance(reasons, list):
                raise ExemptionConfigError("annotation checks and reasons must be lists")
            groups = []
            for reason in reasons:
                if not isinstance(reason, dict) or "reason" not in reason:
                    raise ExemptionConfigError(f"reason entry must have a 'reason' key, got {reason!r}")
                groups.append(ReasonGroup(reason=str(reason["reason"])))
            annotations.append(Annotation(checks=[str(c) for c in checks], reasons=groups))
        return cls(annotations=annotations)


def parse_config(text: str) -> ExemptionConfig:
    """
    Parse maintainer exemption YAML without validating names.

    An empty document gives an empty config.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ExemptionConfigError(f"unable to parse exemption config: {e}") from e
    if data is None:
        return ExemptionConfig()
    return ExemptionConfig.from_dict(data)


def validate(config: ExemptionConfig, known_checks: Iterable[str] = ALL_CHECKS) -> None:
    """
    Check every annotation against the known checks and reasons.

    Raises:
        InvalidCheckError: For the first unknown check name.
        InvalidReasonError: For the first unknown reason.
    """
    known = {c.lower() for c in known_checks}
    for annotation in config.annotations:
        for check in annotation.checks:
            if check.lower() not in known:
                raise InvalidCheckError(check)
        for group in annotation.reasons:
            Reason.parse(group.reason)


def load_config(text: str, known_checks: Iterable[str] = ALL_CHECKS) -> ExemptionConfig:
    """Parse and validate maintainer exemption YAML."""
    config = parse_config(text)
    validate(config, known_checks)
    logger.debug("loaded %d exemption annotations", len(config.annotations))
    return config


def apply(config: ExemptionConfig, check_name: str) -> List[str]:
    """
    Collect the explanations that apply to a check.

    Explanations keep the order of annotations and of reasons within each
    annotation. Check names match case-insensitively.
    """
    explanations: List[str] = []
    for annotation in config.annotations:
        if annotation.covers(check_name):
            explanations.extend(annotation.explanations())
    return explanations


def is_check_exempted(config: ExemptionConfig, check_name: str) -> Tuple[bool, List[str]]:
    """Return whether a check is annotated, and the explanations if so."""
    explanations = apply(config, check_name)
    return bool(explanations), explanations
