from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List

from result_filter.domain.finding import Finding
from result_filter.domain.severity import normalize_severity
from result_filter.framework import FilterContext, FindingStore, register_stage


def normalize_finding_severities(findings: Iterable[Finding]) -> List[Finding]:
    """Rewrite every severity to its canonical string ("" -> "UNKNOWN").

    Raises InvalidSeverityError on the first unrecognized value.
    """
    out: List[Finding] = []
    for f in findings:
        canonical = normalize_severity(f.severity).value
        out.append(f if f.severity == canonical else replace(f, severity=canonical))
    return out


@register_stage(
    "normalize_severity",
    description="Map raw severities to canonical names; reject unknown values.",
)
def stage_normalize_severity(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = store.findings
    store.findings = normalize_finding_severities(before)
    rewritten = sum(1 for a, b in zip(before, store.findings) if a is not b)
    return {"rewritten": rewritten}
