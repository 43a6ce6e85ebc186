from __future__ import annotations

"""result_filter.domain.severity

Canonical severity model.

Findings arrive with free-form severity strings. Everything downstream works
with :class:`Severity`:

- ``normalize_severity`` maps a raw string to its canonical member
- ``severity_rank`` gives a stable integer for sorting

Filtering is set membership (callers pass the exact severities they accept),
never a threshold comparison, so ranks are only used for ordering.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Tuple, Union

from result_filter.errors import InvalidFilterConfigError, InvalidSeverityError


class Severity(str, Enum):
    UNKNOWN = "UNKNOWN"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value


# Lowest first. Never mutated.
SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.UNKNOWN,
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)

ALL_SEVERITIES: FrozenSet[Severity] = frozenset(SEVERITY_ORDER)

_BY_NAME = {s.value: s for s in SEVERITY_ORDER}
_RANKS = {s: i for i, s in enumerate(SEVERITY_ORDER)}


def normalize_severity(raw: Union[str, Severity, None]) -> Severity:
    """Return the canonical severity for *raw*.

    Matching is case-insensitive. ``None`` and the empty string are UNKNOWN;
    any other unrecognized value raises :class:`InvalidSeverityError`.
    """
    if isinstance(raw, Severity):
        return raw
    s = str(raw or "").strip().upper()
    if not s:
        return Severity.UNKNOWN
    sev = _BY_NAME.get(s)
    if sev is None:
        raise InvalidSeverityError(raw)
    return sev


def severity_rank(sev: Severity) -> int:
    return _RANKS[sev]


def parse_severities(values: Union[str, Iterable[Union[str, Severity]], None]) -> FrozenSet[Severity]:
    """Build a severity set from a comma separated string or an iterable.

    The set must be explicit: an empty input is a configuration error, as is
    any entry that does not name a severity.
    """
    if values is None:
        raise InvalidFilterConfigError("severity set is required")
    if isinstance(values, str):
        items = [v.strip() for v in values.split(",")]
    else:
        items = list(values)

    out = set()
    for v in items:
        if isinstance(v, Severity):
            out.add(v)
            continue
        s = str(v or "").strip().upper()
        if not s:
            continue
        sev = _BY_NAME.get(s)
        if sev is None:
            raise InvalidFilterConfigError(f"unknown severity in severity set: {v!r}")
        out.add(sev)

    if not out:
        raise InvalidFilterConfigError("severity set must not be empty")
    return frozenset(out)
