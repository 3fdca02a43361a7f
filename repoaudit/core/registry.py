"""
Probe registry.

A probe is a plain function ``run(raw) -> (findings, probe_id)``. Probe
modules expose a ``register(registry)`` function that adds their probe to a
:class:`ProbeRegistry`; the registry is built once at startup and only read
afterwards. Tests build their own registry holding just the probes they need.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from repoaudit.core.checks import ALL_CHECKS, canonical_check
from repoaudit.core.findings import Finding
from repoaudit.errors import DuplicateProbeError, InvalidCheckError, ProbeNotFoundError


logger = logging.getLogger(__name__)

ProbeResultTuple = Tuple[List[Finding], str]
ProbeImpl = Callable[..., ProbeResultTuple]


@dataclass(frozen=True)
class Probe:
    """A registered probe: identifier, implementation and owning checks."""
    id: str
    run: ProbeImpl
    checks: Tuple[str, ...] = ()

    @property
    def independent(self) -> bool:
        """True for probes that do not belong to any check."""
        return not self.checks


class ProbeRegistry:
    """
    Lookup table from probe identifier to implementation and checks.

    Registration order is preserved by every listing method so callers get
    a deterministic ordering of probes and findings.
    """

    def __init__(self, known_checks: Optional[Iterable[str]] = None):
        self._probes: Dict[str, Probe] = {}
        self._known_checks: List[str] = list(ALL_CHECKS if known_checks is None else known_checks)

    def register(self, probe_id: str, run: ProbeImpl, checks: Iterable[str] = ()) -> Probe:
        """
        Register a probe.

        Args:
            probe_id: Stable identifier of the probe.
            run: The probe implementation.
            checks: Names of the checks the probe belongs to. May be empty.

        Raises:
            ValueError: If the identifier is empty or ``run`` is not callable.
            DuplicateProbeError: If the identifier is already registered.
            InvalidCheckError: If a check name is unknown.
        """
        if not probe_id:
            raise ValueError("probe identifier is required")
        if not callable(run):
            raise ValueError(f"{probe_id}: implementation is required")
        if probe_id in self._probes:
            raise DuplicateProbeError(f"probe {probe_id!r} is already registered")

        canonical = []
        for check in checks:
            name = canonical_check(check, self._known_checks)
            if name is None:
                raise InvalidCheckError(check)
            if name not in canonical:
                canonical.append(name)

        probe = Probe(id=probe_id, run=run, checks=tuple(canonical))
        self._probes[probe_id] = probe
        logger.debug("registered probe %s (checks: %s)", probe_id, ", ".join(canonical) or "none")
        return probe

    def lookup(self, probe_id: str) -> Probe:
        """Get a probe by identifier, raising ProbeNotFoundError if unknown."""
        try:
            return self._probes[probe_id]
        except KeyError:
            raise ProbeNotFoundError(f"probe not found: {probe_id!r}") from None

    def probes_for_check(self, check_name: str) -> List[Probe]:
        """Get the probes of a check in registration order."""
        name = canonical_check(check_name, self._known_checks)
        if name is None:
            raise InvalidCheckError(check_name)
        return [p for p in self._probes.values() if name in p.checks]

    def all_probes(self) -> List[Probe]:
        return list(self._probes.values())

    def independent_probes(self) -> List[Probe]:
        return [p for p in self._probes.values() if p.independent]

    def check_map(self) -> Dict[str, Tuple[str, ...]]:
        """Map every probe identifier to the checks it rolls into."""
        return {probe_id: p.checks for probe_id, p in self._probes.items()}

    def check_names(self) -> List[str]:
        """Names of all checks this registry knows about."""
        return list(self._known_checks)

    def __contains__(self, probe_id: str) -> bool:
        return probe_id in self._probes

    def __len__(self) -> int:
        return len(self._probes)


_default_registry: Optional[ProbeRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> ProbeRegistry:
    """
    Get the registry holding every probe bundled with repoaudit.

    It is built on first use by calling each probe module's ``register``.
    """
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            from repoaudit.probes import register_all

            registry = ProbeRegistry()
            register_all(registry)
            _default_registry = registry
        return _default_registry
