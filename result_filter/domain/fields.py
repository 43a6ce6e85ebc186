"""result_filter.domain.fields

Flat field maps handed to policy evaluators.

A policy sees findings only through these maps, never through the dataclasses
themselves. Each map is tagged with ``kind`` and ``schema_version`` so a
policy can branch per kind and detect contract changes. Field names are fixed
here explicitly (no attribute reflection) so renaming a dataclass attribute
cannot silently change what policies see.

Version 1 fields
----------------
vulnerability:
    id, package, installed_version, fixed_version, severity, title, metadata
misconfiguration:
    id, avd_id, type, title, message, severity, status
secret:
    id, category, severity, title, start_line, end_line, match
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Tuple

from .finding import (
    Finding,
    FindingKind,
    MisconfigurationFinding,
    SecretFinding,
    VulnerabilityFinding,
)

FIELD_MAP_VERSION = 1

FIELD_NAMES: Dict[FindingKind, Tuple[str, ...]] = {
    FindingKind.VULNERABILITY: (
        "id",
        "package",
        "installed_version",
        "fixed_version",
        "severity",
        "title",
        "metadata",
    ),
    FindingKind.MISCONFIGURATION: (
        "id",
        "avd_id",
        "type",
        "title",
        "message",
        "severity",
        "status",
    ),
    FindingKind.SECRET: (
        "id",
        "category",
        "severity",
        "title",
        "start_line",
        "end_line",
        "match",
    ),
}


def field_map(f: Finding) -> Dict[str, Any]:
    """Return the version-1 field map for *f*."""
    if isinstance(f, VulnerabilityFinding):
        fields: Dict[str, Any] = {
            "id": f.vulnerability_id,
            "package": f.pkg_name,
            "installed_version": f.installed_version,
            "fixed_version": f.fixed_version,
            "severity": f.severity,
            "title": f.title,
            "metadata": copy.deepcopy(dict(f.metadata or {})),
        }
    elif isinstance(f, MisconfigurationFinding):
        fields = {
            "id": f.id,
            "avd_id": f.avd_id,
            "type": f.type,
            "title": f.title,
            "message": f.message,
            "severity": f.severity,
            "status": f.status.value,
        }
    elif isinstance(f, SecretFinding):
        fields = {
            "id": f.rule_id,
            "category": f.category,
            "severity": f.severity,
            "title": f.title,
            "start_line": f.start_line,
            "end_line": f.end_line,
            "match": f.match,
        }
    else:
        raise TypeError(f"not a finding: {type(f)!r}")

    fields["kind"] = f.KIND.value
    fields["schema_version"] = FIELD_MAP_VERSION
    return fields
