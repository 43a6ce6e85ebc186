from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, TypeVar

from result_filter.domain.finding import finding_id
from result_filter.framework import FilterContext, FindingStore, register_stage
from result_filter.suppression.rules import SuppressionSource

logger = logging.getLogger(__name__)

F = TypeVar("F")


def apply_suppression(findings: Iterable[F], source: Optional[SuppressionSource]) -> List[F]:
    """Remove every finding matched by at least one suppression rule.

    No source means nothing is suppressed.
    """
    if source is None:
        return list(findings)

    out: List[F] = []
    for f in findings:
        if source.matches(f):
            logger.debug("Suppressed %s %s", f.KIND.value, finding_id(f))
            continue
        out.append(f)
    return out


@register_stage(
    "suppress",
    description="Apply the user ignore list.",
)
def stage_suppress(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = apply_suppression(store.findings, ctx.suppression)
    return {"suppressed": before - len(store.findings)}
