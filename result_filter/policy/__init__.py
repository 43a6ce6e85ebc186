"""result_filter.policy

Pluggable keep/drop policies applied as the last filter gate.
"""

from __future__ import annotations

from .base import FunctionPolicy, Policy, Verdict
from .declarative import DeclarativePolicy, compile_policy, compile_policy_document

__all__ = [
    "DeclarativePolicy",
    "FunctionPolicy",
    "Policy",
    "Verdict",
    "compile_policy",
    "compile_policy_document",
]
