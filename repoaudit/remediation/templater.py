"""
Placeholder substitution for remediation text.

Definitions write remediation guidance with ``${{ name }}`` placeholders.
Two kinds of names exist:

- Reserved tokens under the ``finding.`` namespace, filled from the
  finding itself (currently only ``finding.location.path``).
- Free-form metadata keys supplied by a probe through
  ``Finding.with_remediation_metadata`` (``branch``, ``repo``, ...).

Placeholders without a value are left untouched so a probe that forgets
its metadata shows the raw token instead of failing the run.
"""

from typing import Dict, Mapping, Optional

from repoaudit.core.findings import Location, Remediation


RESERVED_NAMESPACE = "finding."

RESERVED_TOKENS: Dict[str, str] = {
    "finding.location.path": "Path of the location attached to the finding.",
}


def placeholder(name: str) -> str:
    """Return the literal token for a placeholder name."""
    return "${{ " + name + " }}"


def _substitute(remediation: Remediation, token: str, value: str) -> None:
    remediation.text = remediation.text.replace(token, value)
    remediation.markdown = remediation.markdown.replace(token, value)


def render(
    remediation: Remediation,
    location: Optional[Location] = None,
    values: Optional[Mapping[str, str]] = None,
) -> Remediation:
    """
    Substitute placeholders in a remediation's text and markdown.

    Args:
        remediation: The remediation to render. It is not modified.
        location: If given, fills ``${{ finding.location.path }}``.
        values: Metadata values, applied in mapping order.

    Returns:
        A new Remediation with the substitutions applied.

    Raises:
        ValueError: If a metadata key uses the reserved ``finding.`` namespace.
    """
    rendered = remediation.copy()

    if location is not None:
        _substitute(rendered, placeholder("finding.location.path"), location.path)

    for key, value in (values or {}).items():
        if key.startswith(RESERVED_NAMESPACE):
            raise ValueError(f"metadata key {key!r} uses the reserved namespace")
        _substitute(rendered, placeholder(key), value)

    return rendered
