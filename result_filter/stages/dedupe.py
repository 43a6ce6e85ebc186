from __future__ import annotations

"""result_filter.stages.dedupe

Collapse duplicate vulnerability records.

Several detectors (or several advisory sources in one detector) can report
the same advisory for the same installed package. Records sharing the
identity key ``(vulnerability_id, pkg_name, installed_version)`` are one
logical occurrence; exactly one representative survives.

Tie-break
---------
- a non-empty fixed version beats an empty one
- between two non-empty fixed versions the lexicographically greater string
  wins (plain string comparison, so "1.9" beats "1.10")
- otherwise the first-encountered record is kept

The representative is kept whole; fields are never merged across duplicates.
"""

from typing import Any, Dict, Iterable, List

from result_filter.domain.finding import FindingKind, VulnerabilityFinding
from result_filter.framework import FilterContext, FindingStore, register_stage

from .store_keys import StoreKeys


def _prefer(candidate: VulnerabilityFinding, current: VulnerabilityFinding) -> bool:
    """True if *candidate* should replace *current* as representative."""
    if not candidate.fixed_version:
        return False
    if not current.fixed_version:
        return True
    return candidate.fixed_version > current.fixed_version


def deduplicate_vulnerabilities(vulns: Iterable[VulnerabilityFinding]) -> List[VulnerabilityFinding]:
    """Return one record per identity key, in first-occurrence key order."""
    chosen: Dict[tuple, VulnerabilityFinding] = {}
    for v in vulns:
        key = v.identity_key
        current = chosen.get(key)
        if current is None or _prefer(v, current):
            # dict keeps the slot of the first insertion on reassignment
            chosen[key] = v
    return list(chosen.values())


@register_stage(
    "deduplicate",
    description="Keep one vulnerability per (id, package, installed version).",
    kinds=[FindingKind.VULNERABILITY],
    produces=[StoreKeys.DUPLICATES_DROPPED],
)
def stage_deduplicate(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = deduplicate_vulnerabilities(store.findings)
    dropped = before - len(store.findings)
    store.put(StoreKeys.DUPLICATES_DROPPED, dropped)
    return {"duplicates_dropped": dropped}
