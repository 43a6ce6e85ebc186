from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, Optional, Union

from result_filter.domain.severity import Severity, parse_severities
from result_filter.errors import FilterCancelledError

if TYPE_CHECKING:
    from result_filter.policy.base import Policy
    from result_filter.suppression.rules import SuppressionSource


class CancelToken:
    """Cooperative cancellation signal with an optional deadline.

    The filter only looks at the token at coarse boundaries (before each
    stage, and between findings while a policy is being evaluated). Any
    thread may call :meth:`cancel`.
    """

    def __init__(self, *, deadline: Optional[float] = None) -> None:
        self._event = threading.Event()
        # time.monotonic() based
        self.deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: Optional[float]) -> "CancelToken":
        if seconds is None or seconds <= 0:
            return cls()
        return cls(deadline=time.monotonic() + float(seconds))

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self, where: str = "") -> None:
        suffix = f" before {where}" if where else ""
        if self.cancelled:
            raise FilterCancelledError(f"cancelled{suffix}")
        if self.expired:
            raise FilterCancelledError(f"deadline exceeded{suffix}")


@dataclass(frozen=True)
class FilterContext:
    """Immutable job packet for one filter invocation.

    Attributes
    ----------
    severities:
        Accepted severities (explicit set, never empty).
    ignore_unfixed:
        Drop vulnerabilities without a known fixed version.
    include_non_failures:
        Keep PASS / EXCEPTION misconfigurations in the returned list. The
        summary counts them either way.
    suppression:
        Loaded ignore rules, or None.
    policy:
        Compiled policy, or None.
    cancel_token:
        Cancellation / deadline signal checked between stages.
    """

    severities: FrozenSet[Severity]
    ignore_unfixed: bool = False
    include_non_failures: bool = False
    suppression: Optional["SuppressionSource"] = None
    policy: Optional["Policy"] = None
    cancel_token: CancelToken = field(default_factory=CancelToken)

    @staticmethod
    def build(
        *,
        severities: Union[str, Iterable[Union[str, Severity]], None],
        ignore_unfixed: bool = False,
        include_non_failures: bool = False,
        suppression: Optional["SuppressionSource"] = None,
        policy: Optional["Policy"] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> "FilterContext":
        return FilterContext(
            severities=parse_severities(severities),
            ignore_unfixed=bool(ignore_unfixed),
            include_non_failures=bool(include_non_failures),
            suppression=suppression,
            policy=policy,
            cancel_token=cancel_token or CancelToken(),
        )

    def as_dict(self) -> dict:
        return {
            "severities": sorted(s.value for s in self.severities),
            "ignore_unfixed": self.ignore_unfixed,
            "include_non_failures": self.include_non_failures,
            "suppression_rules": len(self.suppression) if self.suppression is not None else None,
            "policy": type(self.policy).__name__ if self.policy is not None else None,
        }
