from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List

from result_filter.domain.finding import FindingKind, MisconfigurationFinding, MisconfStatus, MisconfSummary
from result_filter.framework import FilterContext, FindingStore, register_stage

from .store_keys import StoreKeys


def summarize_misconfigurations(misconfs: Iterable[MisconfigurationFinding]) -> MisconfSummary:
    """Count statuses. An empty input gives an all-zero summary, never None."""
    counts = Counter(m.status for m in misconfs)
    return MisconfSummary(
        successes=counts.get(MisconfStatus.SUCCESS, 0),
        failures=counts.get(MisconfStatus.FAILURE, 0),
        exceptions=counts.get(MisconfStatus.EXCEPTION, 0),
    )


def restrict_to_failures(
    misconfs: Iterable[MisconfigurationFinding], include_non_failures: bool
) -> List[MisconfigurationFinding]:
    if include_non_failures:
        return list(misconfs)
    return [m for m in misconfs if m.status is MisconfStatus.FAILURE]


@register_stage(
    "summarize_misconfigurations",
    description="Count FAIL / PASS / EXCEPTION over the filtered misconfigurations.",
    kinds=[FindingKind.MISCONFIGURATION],
    produces=[StoreKeys.MISCONF_SUMMARY],
)
def stage_summarize_misconfigurations(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    summary = summarize_misconfigurations(store.findings)
    store.put(StoreKeys.MISCONF_SUMMARY, summary)
    return summary.to_dict()


@register_stage(
    "restrict_failures",
    description="Hide PASS / EXCEPTION misconfigurations unless include_non_failures is set.",
    kinds=[FindingKind.MISCONFIGURATION],
)
def stage_restrict_failures(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = restrict_to_failures(store.findings, ctx.include_non_failures)
    return {"hidden": before - len(store.findings)}
