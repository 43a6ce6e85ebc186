"""result_filter

Result-filtering core for a vulnerability / misconfiguration / secret scanner.

Detectors produce raw findings. This package decides which of them survive
into the final report:

* severities are normalized and filtered against an explicit set
* duplicate vulnerability records collapse to one representative
* unfixed vulnerabilities can be dropped
* a user suppression list and a pluggable policy remove acknowledged findings
* misconfigurations get a pass/fail/exception summary

The public entrypoint is :func:`result_filter.filter.filter_results`.
"""

from __future__ import annotations

from .errors import (
    ErrorKind,
    FilterCancelledError,
    FilterError,
    InvalidFilterConfigError,
    InvalidSeverityError,
    PolicyCompileError,
    PolicyEvaluationError,
    SuppressionLoadError,
)
from .filter import FilterResult, filter_results, filter_with_options

__all__ = [
    "ErrorKind",
    "FilterCancelledError",
    "FilterError",
    "FilterResult",
    "InvalidFilterConfigError",
    "InvalidSeverityError",
    "PolicyCompileError",
    "PolicyEvaluationError",
    "SuppressionLoadError",
    "filter_results",
    "filter_with_options",
]
