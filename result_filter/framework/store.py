from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from result_filter.domain.finding import Finding, FindingKind


@dataclass
class FindingStore:
    """Working set for one finding kind during one invocation.

    Stages read ``findings``, replace it with their output, and may cache side
    results (the misconfiguration summary) under ``data``. A fresh store is
    built for every kind on every call; nothing outlives the invocation.
    """

    kind: FindingKind
    findings: List[Finding] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value

    def require(self, key: str) -> Any:
        if key not in self.data:
            raise KeyError(f"Required value missing from store: {key}")
        return self.data[key]
