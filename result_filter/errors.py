"""result_filter.errors

Error taxonomy for a filter invocation.

Every error is fatal for the call that raised it: callers must treat any
:class:`FilterError` as "do not trust the result". Nothing partial is ever
returned next to an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_SEVERITY = "InvalidSeverity"
    INVALID_FILTER_CONFIG = "InvalidFilterConfig"
    SUPPRESSION_LOAD_FAILED = "SuppressionLoadFailed"
    POLICY_COMPILE_FAILED = "PolicyCompileFailed"
    POLICY_EVALUATION_FAILED = "PolicyEvaluationFailed"
    CANCELLED = "Cancelled"


class FilterError(Exception):
    """Base class for all filter failures. ``kind`` identifies the category."""

    kind: ErrorKind = ErrorKind.INVALID_FILTER_CONFIG

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{self.kind.value}: {msg}" if msg else self.kind.value


class InvalidSeverityError(FilterError):
    kind = ErrorKind.INVALID_SEVERITY

    def __init__(self, raw: object) -> None:
        super().__init__(f"unrecognized severity {raw!r}")
        self.raw = raw


class InvalidFilterConfigError(FilterError):
    kind = ErrorKind.INVALID_FILTER_CONFIG


class SuppressionLoadError(FilterError):
    kind = ErrorKind.SUPPRESSION_LOAD_FAILED


class PolicyCompileError(FilterError):
    kind = ErrorKind.POLICY_COMPILE_FAILED


class PolicyEvaluationError(FilterError):
    kind = ErrorKind.POLICY_EVALUATION_FAILED

    def __init__(self, message: str, *, finding_id: Optional[str] = None) -> None:
        if finding_id:
            message = f"{message} (finding {finding_id})"
        super().__init__(message)
        self.finding_id = finding_id


class FilterCancelledError(FilterError):
    kind = ErrorKind.CANCELLED
