"""
Remediation helpers.

Renders placeholder tokens in remediation guidance and synthesizes
patches that fix script injection in CI workflows.
"""

from repoaudit.remediation.templater import render, RESERVED_TOKENS
from repoaudit.remediation.patch import PatchCache, WorkflowPatch, synthesize_patch

__all__ = [
    "render",
    "RESERVED_TOKENS",
    "PatchCache",
    "WorkflowPatch",
    "synthesize_patch",
]
