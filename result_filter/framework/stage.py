from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .context import FilterContext
from .store import FindingStore

StageFunc = Callable[[FilterContext, FindingStore], Optional[Dict[str, Any]]]


@dataclass
class StageResult:
    """Execution record for one stage on one finding kind."""

    name: str
    kind: str
    count_in: int
    count_out: int
    elapsed_ms: float

    summary: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "count_in": self.count_in,
            "count_out": self.count_out,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "summary": dict(self.summary),
        }
