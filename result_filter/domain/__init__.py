"""result_filter.domain

Domain objects that form the *contract* between filter stages.

Detectors produce findings in their own shapes. The filter works on the
normalized representation defined here so that stages never need to know
detector quirks.
"""

from __future__ import annotations

from .fields import FIELD_MAP_VERSION, field_map
from .finding import (
    Finding,
    FindingKind,
    MisconfigurationFinding,
    MisconfStatus,
    MisconfSummary,
    SecretFinding,
    VulnerabilityFinding,
    finding_id,
)
from .severity import (
    ALL_SEVERITIES,
    SEVERITY_ORDER,
    Severity,
    normalize_severity,
    parse_severities,
    severity_rank,
)

__all__ = [
    "ALL_SEVERITIES",
    "FIELD_MAP_VERSION",
    "Finding",
    "FindingKind",
    "MisconfigurationFinding",
    "MisconfStatus",
    "MisconfSummary",
    "SEVERITY_ORDER",
    "SecretFinding",
    "Severity",
    "VulnerabilityFinding",
    "field_map",
    "finding_id",
    "normalize_severity",
    "parse_severities",
    "severity_rank",
]
