from __future__ import annotations

from typing import Any, Dict, Iterable, List

from result_filter.domain.finding import FindingKind, VulnerabilityFinding
from result_filter.domain.severity import normalize_severity, severity_rank
from result_filter.framework import FilterContext, FindingStore, register_stage


def sort_vulnerabilities(vulns: Iterable[VulnerabilityFinding]) -> List[VulnerabilityFinding]:
    """Package name, then most severe first, then advisory ID, then installed version."""
    return sorted(
        vulns,
        key=lambda v: (
            v.pkg_name,
            -severity_rank(normalize_severity(v.severity)),
            v.vulnerability_id,
            v.installed_version,
        ),
    )


@register_stage(
    "sort_vulnerabilities",
    description="Deterministic output order for vulnerabilities.",
    kinds=[FindingKind.VULNERABILITY],
)
def stage_sort_vulnerabilities(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    store.findings = sort_vulnerabilities(store.findings)
    return {}
