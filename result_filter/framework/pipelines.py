"""result_filter.framework.pipelines

Pipeline definitions (ordered stage lists), one per finding kind.

Order matters:

- deduplication runs before severity filtering so the surviving
  representative's severity is what gets filtered
- suppression runs after severity / fix-state filtering so ignore rules only
  see findings that would otherwise be reported
- the policy is the last gate
- the misconfiguration summary is taken after the policy and before the
  failure-only restriction, so passes and exceptions are still counted
"""

from __future__ import annotations

from typing import Dict, List

from result_filter.domain.finding import FindingKind

PIPELINES: Dict[FindingKind, List[str]] = {
    FindingKind.VULNERABILITY: [
        "normalize_severity",
        "deduplicate",
        "filter_severity",
        "filter_unfixed",
        "suppress",
        "apply_policy",
        "sort_vulnerabilities",
    ],
    FindingKind.MISCONFIGURATION: [
        "normalize_severity",
        "filter_severity",
        "suppress",
        "apply_policy",
        "summarize_misconfigurations",
        "restrict_failures",
    ],
    FindingKind.SECRET: [
        "normalize_severity",
        "filter_severity",
        "suppress",
        "apply_policy",
    ],
}
