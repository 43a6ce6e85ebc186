"""result_filter.filter

The orchestrator: runs the per-kind pipelines and assembles the result.

::

    result = filter_results(
        vulns, misconfs, secrets,
        severities={Severity.CRITICAL, Severity.HIGH},
        ignore_unfixed=True,
        suppression=load_ignore_file(Path(".trivyignore")),
        policy=compile_policy(Path("policy.yaml")),
    )
    vulns, summary, misconfs, secrets = result

Kinds run in a fixed order (vulnerabilities, misconfigurations, secrets).
The first error aborts the call; no partial result is ever returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Sequence

# Import side-effect: registers builtin stages.
from result_filter import stages as _stages  # noqa: F401
from result_filter.config import FilterOptions
from result_filter.domain.finding import (
    FindingKind,
    MisconfigurationFinding,
    MisconfSummary,
    SecretFinding,
    VulnerabilityFinding,
)
from result_filter.framework import (
    PIPELINES,
    CancelToken,
    FilterContext,
    FindingStore,
    StageResult,
    run_pipeline,
)
from result_filter.policy.base import Policy
from result_filter.policy.declarative import compile_policy
from result_filter.stages.store_keys import StoreKeys
from result_filter.suppression.loader import load_ignore_file
from result_filter.suppression.rules import SuppressionSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterResult:
    """Filtered findings plus the misconfiguration summary.

    Iterating yields ``(vulnerabilities, misconf_summary, misconfigurations,
    secrets)`` so the result can be unpacked like a tuple.
    """

    vulnerabilities: List[VulnerabilityFinding]
    misconf_summary: MisconfSummary
    misconfigurations: List[MisconfigurationFinding]
    secrets: List[SecretFinding]
    stage_results: List[StageResult] = field(default_factory=list, compare=False)

    def __iter__(self) -> Iterator[Any]:
        return iter((self.vulnerabilities, self.misconf_summary, self.misconfigurations, self.secrets))

    def to_dict(self) -> dict:
        return {
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "misconf_summary": self.misconf_summary.to_dict(),
            "misconfigurations": [m.to_dict() for m in self.misconfigurations],
            "secrets": [s.to_dict() for s in self.secrets],
        }


def _check_types(findings: Sequence[Any], cls: type, what: str) -> None:
    for f in findings:
        if not isinstance(f, cls):
            raise TypeError(f"{what} must contain {cls.__name__} items, got {type(f)!r}")


def run_filter(
    ctx: FilterContext,
    vulnerabilities: Optional[Iterable[VulnerabilityFinding]] = None,
    misconfigurations: Optional[Iterable[MisconfigurationFinding]] = None,
    secrets: Optional[Iterable[SecretFinding]] = None,
) -> FilterResult:
    """Run all three pipelines under an already built context."""
    inputs = {
        FindingKind.VULNERABILITY: list(vulnerabilities or []),
        FindingKind.MISCONFIGURATION: list(misconfigurations or []),
        FindingKind.SECRET: list(secrets or []),
    }
    _check_types(inputs[FindingKind.VULNERABILITY], VulnerabilityFinding, "vulnerabilities")
    _check_types(inputs[FindingKind.MISCONFIGURATION], MisconfigurationFinding, "misconfigurations")
    _check_types(inputs[FindingKind.SECRET], SecretFinding, "secrets")

    stores = {}
    stage_results: List[StageResult] = []
    for kind, findings in inputs.items():
        store = FindingStore(kind=kind, findings=findings)
        stage_results.extend(run_pipeline(ctx, store, stage_names=PIPELINES[kind]))
        stores[kind] = store

    ctx.cancel_token.raise_if_cancelled("returning results")

    result = FilterResult(
        vulnerabilities=list(stores[FindingKind.VULNERABILITY].findings),
        misconf_summary=stores[FindingKind.MISCONFIGURATION].require(StoreKeys.MISCONF_SUMMARY),
        misconfigurations=list(stores[FindingKind.MISCONFIGURATION].findings),
        secrets=list(stores[FindingKind.SECRET].findings),
        stage_results=stage_results,
    )
    logger.info(
        "Filtered findings: %d vulnerabilities, %d misconfigurations (%d checks summarized), %d secrets",
        len(result.vulnerabilities),
        len(result.misconfigurations),
        result.misconf_summary.total,
        len(result.secrets),
    )
    return result


def filter_results(
    vulnerabilities: Optional[Iterable[VulnerabilityFinding]],
    misconfigurations: Optional[Iterable[MisconfigurationFinding]],
    secrets: Optional[Iterable[SecretFinding]],
    *,
    severities: Any,
    ignore_unfixed: bool = False,
    include_non_failures: bool = False,
    suppression: Optional[SuppressionSource] = None,
    policy: Optional[Policy] = None,
    cancel_token: Optional[CancelToken] = None,
) -> FilterResult:
    """Filter raw findings into the reportable result set.

    ``severities`` is the explicit set of accepted severities (``Severity``
    members or names, or a comma separated string); it must not be empty.
    ``suppression`` and ``policy`` are optional, already loaded collaborators.

    Raises a :class:`~result_filter.errors.FilterError` subclass on any
    failure.
    """
    ctx = FilterContext.build(
        severities=severities,
        ignore_unfixed=ignore_unfixed,
        include_non_failures=include_non_failures,
        suppression=suppression,
        policy=policy,
        cancel_token=cancel_token,
    )
    return run_filter(ctx, vulnerabilities, misconfigurations, secrets)


def filter_with_options(
    options: FilterOptions,
    vulnerabilities: Optional[Iterable[VulnerabilityFinding]],
    misconfigurations: Optional[Iterable[MisconfigurationFinding]],
    secrets: Optional[Iterable[SecretFinding]],
    *,
    cancel_token: Optional[CancelToken] = None,
) -> FilterResult:
    """Load the ignore file / policy named in *options*, then filter."""
    token = cancel_token or CancelToken.with_timeout(options.timeout_seconds)

    suppression = load_ignore_file(options.ignore_file) if options.ignore_file else None
    policy = compile_policy(options.policy_file) if options.policy_file else None

    return filter_results(
        vulnerabilities,
        misconfigurations,
        secrets,
        severities=options.severities,
        ignore_unfixed=options.ignore_unfixed,
        include_non_failures=options.include_non_failures,
        suppression=suppression,
        policy=policy,
        cancel_token=token,
    )
