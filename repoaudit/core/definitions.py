"""
Probe definitions.

Every probe ships a YAML document describing what it measures and how to
remediate a negative result. Example::

    id: testsRunInCI
    lifecycle: Stable
    short: Check that the project runs tests in CI.
    motivation: >
      Running tests in CI catches regressions before they are merged.
    implementation: >
      Looks at the statuses and check runs of recently merged pull requests.
    remediation:
      onOutcome: False
      effort: Medium
      text:
        - Run tests in CI on every pull request.
      markdown:
        - Run tests in CI on every pull request.
    ecosystem:
      languages:
        - all
      clients:
        - github

Definitions are read from a directory bundled with the package and parsed
at most once per probe for the lifetime of the process.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from repoaudit.core.findings import Outcome, Remediation, RemediationEffort
from repoaudit.errors import DefinitionInvalidError, DefinitionNotFoundError


logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "probes" / "definitions"

SUPPORTED_LANGUAGES = {
    "all", "c", "cpp", "csharp", "dockerfile", "go", "haskell", "java",
    "javascript", "kotlin", "objectivec", "php", "python", "ruby", "rust",
    "scala", "starlark", "swift", "typescript",
}

SUPPORTED_CLIENTS = {"github", "gitlab", "localdir"}


class Lifecycle(Enum):
    """Maturity of a probe."""
    EXPERIMENTAL = "Experimental"
    STABLE = "Stable"
    DEPRECATED = "Deprecated"


@dataclass(frozen=True)
class Ecosystem:
    """Languages and hosting clients a probe applies to."""
    languages: List[str] = field(default_factory=list)
    clients: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Definition:
    """Static documentation of one probe."""
    id: str
    lifecycle: Lifecycle
    short: str
    motivation: str
    implementation: str
    remediation: Optional[Remediation]
    remediate_on_outcome: Outcome = Outcome.FALSE
    ecosystem: Ecosystem = field(default_factory=Ecosystem)


def _parse_outcome(value: Any, probe_id: str) -> Outcome:
    # YAML reads bare True/False as booleans.
    if isinstance(value, bool):
        return Outcome.TRUE if value else Outcome.FALSE
    try:
        return Outcome(str(value))
    except ValueError:
        raise DefinitionInvalidError(f"{probe_id}: unknown outcome: {value!r}")


def _parse_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return str(value).strip()


def parse_definition(content: Union[str, bytes], probe_id: str) -> Definition:
    """
    Parse and validate a definition document.

    Args:
        content: The YAML text.
        probe_id: The identifier the document is expected to declare.

    Raises:
        DefinitionInvalidError: If the document does not parse or validate.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DefinitionInvalidError(f"{probe_id}: unable to parse yaml: {e}") from e

    if not isinstance(data, dict):
        raise DefinitionInvalidError(f"{probe_id}: definition is not a mapping")

    if data.get("id") != probe_id:
        raise DefinitionInvalidError(
            f"{probe_id}: ID: read {data.get('id')!r}, expected {probe_id!r}"
        )

    try:
        lifecycle = Lifecycle(data.get("lifecycle", "Experimental"))
    except ValueError:
        raise DefinitionInvalidError(f"{probe_id}: lifecycle {data.get('lifecycle')!r}")

    rem_data = data.get("remediation") or {}
    remediate_on = _parse_outcome(rem_data.get("onOutcome", "False"), probe_id)
    remediation = None
    if rem_data:
        try:
            effort = RemediationEffort(rem_data.get("effort"))
        except ValueError:
            raise DefinitionInvalidError(f"{probe_id}: effort {rem_data.get('effort')!r}")
        remediation = Remediation(
            effort=effort,
            text=_parse_text(rem_data.get("text")),
            markdown=_parse_text(rem_data.get("markdown")),
        )

    eco_data = data.get("ecosystem") or {}
    languages = [str(l).lower() for l in eco_data.get("languages") or []]
    clients = [str(c).lower() for c in eco_data.get("clients") or []]
    for language in languages:
        if language not in SUPPORTED_LANGUAGES:
            raise DefinitionInvalidError(f"{probe_id}: language {language!r}")
    for client in clients:
        if client not in SUPPORTED_CLIENTS:
            raise DefinitionInvalidError(f"{probe_id}: client {client!r}")

    return Definition(
        id=probe_id,
        lifecycle=lifecycle,
        short=_parse_text(data.get("short")),
        motivation=_parse_text(data.get("motivation")),
        implementation=_parse_text(data.get("implementation")),
        remediation=remediation,
        remediate_on_outcome=remediate_on,
        ecosystem=Ecosystem(languages=languages, clients=clients),
    )


class DefinitionBundle:
    """
    Read-only collection of definitions stored as ``<probe id>.yml`` files.

    Lookups are memoized; the first lookup of an identifier is serialized by
    a lock so concurrent probes parse each document once.
    """

    _default: Optional["DefinitionBundle"] = None
    _default_lock = threading.Lock()

    def __init__(self, directory: Union[str, Path] = DEFINITIONS_DIR):
        self.directory = Path(directory)
        self._cache: Dict[str, Definition] = {}
        self._lock = threading.Lock()

    @classmethod
    def default(cls) -> "DefinitionBundle":
        """Get the bundle holding the definitions shipped with repoaudit."""
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls(DEFINITIONS_DIR)
            return cls._default

    def get(self, probe_id: str) -> Definition:
        """
        Get the definition of a probe.

        Raises:
            DefinitionNotFoundError: If no document exists for ``probe_id``.
            DefinitionInvalidError: If the document is malformed.
        """
        definition = self._cache.get(probe_id)
        if definition is not None:
            return definition

        with self._lock:
            definition = self._cache.get(probe_id)
            if definition is None:
                definition = self._load(probe_id)
                self._cache[probe_id] = definition
        return definition

    def _load(self, probe_id: str) -> Definition:
        if not probe_id or "/" in probe_id or "\\" in probe_id:
            raise DefinitionNotFoundError(f"probe not found: {probe_id!r}")
        path = self.directory / f"{probe_id}.yml"
        if not path.is_file():
            raise DefinitionNotFoundError(f"probe not found: {probe_id!r}")
        logger.debug("loading definition %s from %s", probe_id, path)
        return parse_definition(path.read_text(encoding="utf-8"), probe_id)

    def ids(self) -> List[str]:
        """List the identifiers available in this bundle."""
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.yml"))

    def load_all(self) -> List[Definition]:
        """Eagerly parse every definition in the bundle."""
        return [self.get(probe_id) for probe_id in self.ids()]
