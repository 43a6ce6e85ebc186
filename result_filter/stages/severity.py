from __future__ import annotations

from typing import AbstractSet, Any, Dict, Iterable, List, TypeVar

from result_filter.domain.severity import Severity, normalize_severity
from result_filter.errors import InvalidFilterConfigError
from result_filter.framework import FilterContext, FindingStore, register_stage

F = TypeVar("F")


def filter_by_severity(findings: Iterable[F], severities: AbstractSet[Severity]) -> List[F]:
    """Keep findings whose normalized severity is a member of *severities*.

    Membership, not a threshold: {CRITICAL, UNKNOWN} keeps exactly those two.
    """
    if not severities:
        raise InvalidFilterConfigError("severity set must not be empty")
    return [f for f in findings if normalize_severity(f.severity) in severities]


@register_stage(
    "filter_severity",
    description="Keep findings whose severity is in the requested set.",
)
def stage_filter_severity(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = filter_by_severity(store.findings, ctx.severities)
    return {"dropped": before - len(store.findings)}
