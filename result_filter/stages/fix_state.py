from __future__ import annotations

from typing import Any, Dict, Iterable, List

from result_filter.domain.finding import FindingKind, VulnerabilityFinding
from result_filter.framework import FilterContext, FindingStore, register_stage


def filter_unfixed(vulns: Iterable[VulnerabilityFinding], ignore_unfixed: bool) -> List[VulnerabilityFinding]:
    """Drop vulnerabilities without a fixed version when *ignore_unfixed* is set."""
    if not ignore_unfixed:
        return list(vulns)
    return [v for v in vulns if v.has_fix]


@register_stage(
    "filter_unfixed",
    description="Drop vulnerabilities with no known fixed version (ignore_unfixed).",
    kinds=[FindingKind.VULNERABILITY],
)
def stage_filter_unfixed(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = filter_unfixed(store.findings, ctx.ignore_unfixed)
    return {"enabled": ctx.ignore_unfixed, "dropped": before - len(store.findings)}
