from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Sequence

from result_filter.io.fs import write_json_atomic

from .context import FilterContext
from .registry import get_stage
from .stage import StageResult
from .store import FindingStore

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def run_pipeline(
    ctx: FilterContext,
    store: FindingStore,
    *,
    stage_names: Sequence[str],
) -> List[StageResult]:
    """Run an ordered list of registered stages over ``store``.

    Unlike a reporting pipeline this one is fail-fast: the first exception
    propagates and the store is left half-filtered. Callers must discard it.
    The cancel token is checked before every stage.
    """
    stage_defs = [get_stage(n) for n in stage_names]

    # Pre-flight: every stage must understand this finding kind.
    for sd in stage_defs:
        if store.kind not in sd.kinds:
            raise ValueError(f"stage '{sd.name}' does not apply to {store.kind.value} findings")

    results: List[StageResult] = []
    for sd in stage_defs:
        ctx.cancel_token.raise_if_cancelled(f"{store.kind.value}:{sd.name}")

        count_in = len(store.findings)
        started = time.perf_counter()
        summary = sd.func(ctx, store) or {}
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        for key in sd.produces:
            if key not in store.data:
                raise KeyError(f"stage '{sd.name}' did not produce store key: {key}")

        logger.debug(
            "stage %s [%s]: %d -> %d findings (%.2f ms)",
            sd.name,
            store.kind.value,
            count_in,
            len(store.findings),
            elapsed_ms,
        )
        results.append(
            StageResult(
                name=sd.name,
                kind=store.kind.value,
                count_in=count_in,
                count_out=len(store.findings),
                elapsed_ms=elapsed_ms,
                summary=dict(summary),
            )
        )

    return results


def write_filter_manifest(
    context: Mapping[str, Any],
    *,
    stage_results: Sequence[StageResult],
    path: Path,
) -> Path:
    """Write a JSON manifest describing what each stage did.

    ``context`` is any JSON-friendly description of the run (usually
    ``FilterContext.as_dict()`` or ``FilterOptions.as_dict()``).
    """
    p = Path(path)
    data = {
        "generated_at": _now_iso(),
        "context": dict(context),
        "stages": [r.as_dict() for r in stage_results],
    }
    write_json_atomic(p, data, indent=2, sort_keys=True)
    return p
