"""
Probes bundled with repoaudit.

Each probe module defines ``PROBE`` (its identifier), ``CHECKS`` (the
checks it rolls into), ``run(raw)`` and ``register(registry)``. The YAML
definition of every probe lives in ``definitions/<PROBE>.yml``.
"""

from repoaudit.probes import (
    has_binary_artifacts,
    has_dangerous_workflow_script_injection,
    has_dangerous_workflow_untrusted_checkout,
    has_fsf_or_osi_approved_license,
    has_license_file,
    has_openssf_badge,
    has_osv_vulnerabilities,
    has_permissive_license,
    not_archived,
    pins_dependencies,
    security_policy_present,
    tests_run_in_ci,
    tool_dependabot_installed,
    tool_renovate_installed,
    webhooks_use_secrets,
)

# Registration order is the order probes and their findings are reported in.
PROBE_MODULES = [
    has_binary_artifacts,
    has_openssf_badge,
    tests_run_in_ci,
    has_dangerous_workflow_script_injection,
    has_dangerous_workflow_untrusted_checkout,
    tool_dependabot_installed,
    tool_renovate_installed,
    has_license_file,
    has_fsf_or_osi_approved_license,
    not_archived,
    pins_dependencies,
    security_policy_present,
    has_osv_vulnerabilities,
    webhooks_use_secrets,
    has_permissive_license,
]


def register_all(registry):
    """Register every bundled probe on ``registry``."""
    for module in PROBE_MODULES:
        module.register(registry)
    return registry


__all__ = ["PROBE_MODULES", "register_all"]
