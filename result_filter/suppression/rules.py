"""result_filter.suppression.rules

Suppression (ignore) rules.

The filter core only relies on :class:`SuppressionRule` - anything with a
``match(finding) -> bool`` method. :class:`IgnoreRule` is the rule type the
bundled ignore-file loader produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from fnmatch import fnmatchcase
from typing import Iterable, Iterator, List, Optional, Protocol, Tuple

from result_filter.domain.finding import (
    Finding,
    FindingKind,
    MisconfigurationFinding,
    SecretFinding,
    VulnerabilityFinding,
)

ALL_KINDS: Tuple[FindingKind, ...] = tuple(FindingKind)


class SuppressionRule(Protocol):
    def match(self, finding: Finding) -> bool:
        ...


def _identifiers(f: Finding) -> Tuple[str, ...]:
    if isinstance(f, VulnerabilityFinding):
        return (f.vulnerability_id,)
    if isinstance(f, MisconfigurationFinding):
        return tuple(i for i in (f.id, f.avd_id) if i)
    if isinstance(f, SecretFinding):
        return (f.rule_id,)
    return ()


@dataclass(frozen=True)
class IgnoreRule:
    """Silence findings whose identifier matches ``id`` (glob allowed).

    ``kinds`` restricts the rule to some finding kinds; ``packages`` further
    restricts a vulnerability rule to matching package names.
    """

    id: str
    kinds: Tuple[FindingKind, ...] = ALL_KINDS
    packages: Tuple[str, ...] = ()
    expires: Optional[date] = None
    statement: str = ""
    # "<file>:<line>" style provenance for log messages
    origin: str = ""

    def expired(self, today: date) -> bool:
        return self.expires is not None and self.expires < today

    def match(self, finding: Finding) -> bool:
        if finding.KIND not in self.kinds:
            return False
        if not any(fnmatchcase(i, self.id) for i in _identifiers(finding)):
            return False
        if self.packages:
            if not isinstance(finding, VulnerabilityFinding):
                return False
            return any(fnmatchcase(finding.pkg_name, p) for p in self.packages)
        return True


class SuppressionSource:
    """An already loaded, validated set of suppression rules."""

    def __init__(self, rules: Iterable[SuppressionRule] = (), *, origin: str = "") -> None:
        self.rules: List[SuppressionRule] = list(rules)
        self.origin = origin

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[SuppressionRule]:
        return iter(self.rules)

    def __repr__(self) -> str:
        return f"SuppressionSource(rules={len(self.rules)}, origin={self.origin!r})"

    def matches(self, finding: Finding) -> bool:
        return any(r.match(finding) for r in self.rules)
