from __future__ import annotations

"""result_filter.stages.policy

The last gate: an externally supplied policy decides keep/drop per finding.

The policy only ever sees the flat field map of a finding. Anything going
wrong inside it (an exception, or an answer that is not a verdict) fails the
whole invocation.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, TypeVar

from result_filter.domain.fields import field_map
from result_filter.domain.finding import finding_id
from result_filter.errors import FilterError, PolicyEvaluationError
from result_filter.framework import CancelToken, FilterContext, FindingStore, register_stage
from result_filter.policy.base import Policy, Verdict

logger = logging.getLogger(__name__)

F = TypeVar("F")


def _decide(policy: Policy, f: Any) -> Verdict:
    fid = finding_id(f)
    try:
        verdict = policy.decide(field_map(f))
    except PolicyEvaluationError as e:
        if e.finding_id:
            raise
        raise PolicyEvaluationError(str(e.args[0]) if e.args else "policy failed", finding_id=fid) from e
    except FilterError:
        raise
    except Exception as e:
        raise PolicyEvaluationError(f"policy raised {type(e).__name__}: {e}", finding_id=fid) from e

    if verdict is None:
        return Verdict.KEEP
    # A plain bool answers "ignore?": True drops.
    if isinstance(verdict, bool):
        return Verdict.DROP if verdict else Verdict.KEEP
    if not isinstance(verdict, Verdict):
        raise PolicyEvaluationError(f"policy returned {verdict!r}, expected a Verdict, bool or None", finding_id=fid)
    return verdict


def apply_policy(
    findings: Iterable[F],
    policy: Optional[Policy],
    *,
    cancel_token: Optional[CancelToken] = None,
) -> List[F]:
    """Keep the findings the policy does not drop. No policy keeps everything."""
    if policy is None:
        return list(findings)

    out: List[F] = []
    for f in findings:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("policy evaluation")
        if _decide(policy, f) is Verdict.DROP:
            logger.debug("Policy dropped %s %s", f.KIND.value, finding_id(f))
            continue
        out.append(f)
    return out


@register_stage(
    "apply_policy",
    description="Apply the compiled policy as a final keep/drop gate.",
)
def stage_apply_policy(ctx: FilterContext, store: FindingStore) -> Dict[str, Any]:
    before = len(store.findings)
    store.findings = apply_policy(store.findings, ctx.policy, cancel_token=ctx.cancel_token)
    return {"dropped": before - len(store.findings)}
