"""
Probe runner.

Runs a selection of registered probes against one raw results snapshot and
collects their findings. A probe that raises is recorded as a failed result
and does not stop the others.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from repoaudit import exemptions
from repoaudit.config import RunnerConfig
from repoaudit.core.findings import Finding, Outcome, worst_outcome
from repoaudit.core.raw import RawResults
from repoaudit.core.registry import Probe, ProbeRegistry, default_registry
from repoaudit.log import LOGGER_NAME


logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    """Findings of one probe, or the error that stopped it."""
    probe: str
    findings: List[Finding] = field(default_factory=list)
    error: Optional[Exception] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def outcome(self) -> Optional[Outcome]:
        """Worst outcome across the findings, None if there are none."""
        return worst_outcome(self.findings)


class ProbeRunner:
    """
    Runs probes from a registry.

    Results are always returned in the order the probes were requested,
    whether or not they ran concurrently.
    """

    def __init__(self, registry: Optional[ProbeRegistry] = None, config: Optional[RunnerConfig] = None):
        self.registry = registry if registry is not None else default_registry()
        self.config = config or RunnerConfig()
        if config is not None:
            logging.getLogger(LOGGER_NAME).setLevel(self.config.log_level)
        self.exemptions = self._load_exemptions()

    def _load_exemptions(self) -> exemptions.ExemptionConfig:
        if not self.config.exemptions_file:
            return exemptions.ExemptionConfig()
        text = Path(self.config.exemptions_file).read_text(encoding="utf-8")
        return exemptions.load_config(text, self.registry.check_names())

    def select(self, probe_ids: Optional[Sequence[str]] = None) -> List[Probe]:
        """
        Resolve which probes a run covers.

        Explicit ``probe_ids`` win over the configured probes, which win over
        the configured checks. With nothing configured every probe runs.

        Raises:
            ProbeNotFoundError: If an identifier is not registered.
            InvalidCheckError: If a configured check is unknown.
        """
        if probe_ids is None and self.config.probes:
            probe_ids = self.config.probes

        if probe_ids is not None:
            return [self.registry.lookup(probe_id) for probe_id in probe_ids]

        if self.config.checks:
            selected: List[Probe] = []
            for check in self.config.checks:
                for probe in self.registry.probes_for_check(check):
                    if probe not in selected:
                        selected.append(probe)
            return selected

        return self.registry.all_probes()

    def run_probe(self, probe: Probe, raw: Optional[RawResults]) -> ProbeResult:
        """Run one probe, capturing any exception it raises."""
        start_time = time.time()
        try:
            findings, probe_id = probe.run(raw)
        except Exception as e:
            logger.error("probe %s failed: %s", probe.id, e)
            logger.debug("probe %s traceback", probe.id, exc_info=True)
            return ProbeResult(probe=probe.id, error=e, duration_seconds=round(time.time() - start_time, 3))

        if probe_id != probe.id:
            logger.warning("probe %s reported itself as %s", probe.id, probe_id)

        elapsed = time.time() - start_time
        logger.debug("probe %s: %d findings in %.3fs", probe.id, len(findings), elapsed)
        return ProbeResult(probe=probe.id, findings=list(findings), duration_seconds=round(elapsed, 3))

    def _run_all(self, probes: List[Probe], raw: Optional[RawResults]) -> List[ProbeResult]:
        if len(probes) > 1 and self.config.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = [executor.submit(self.run_probe, probe, raw) for probe in probes]
                return [future.result() for future in futures]
        return [self.run_probe(probe, raw) for probe in probes]

    def run(self, raw: Optional[RawResults], probe_ids: Optional[Sequence[str]] = None) -> List[ProbeResult]:
        """
        Run probes against a snapshot.

        Args:
            raw: The raw results snapshot.
            probe_ids: Probes to run. Defaults to the configured selection.

        Returns:
            One ProbeResult per probe, in request order.
        """
        probes = self.select(probe_ids)
        logger.info("running %d probes", len(probes))
        results = self._run_all(probes, raw)

        failed = [r.probe for r in results if not r.ok]
        if failed:
            logger.warning("%d of %d probes failed: %s", len(failed), len(results), ", ".join(failed))
        return results

    def run_check(self, raw: Optional[RawResults], check_name: str) -> List[ProbeResult]:
        """Run the probes of one check, in registration order."""
        probes = self.registry.probes_for_check(check_name)
        logger.info("running check %s (%d probes)", check_name, len(probes))
        return self._run_all(probes, raw)

    def explanations(self, check_name: str) -> List[str]:
        """Maintainer exemption explanations to show next to a check."""
        return exemptions.apply(self.exemptions, check_name)
