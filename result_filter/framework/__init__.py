"""result_filter.framework

A small stage-based filter framework.

- **FilterContext (ctx)**: an immutable job packet (severities, switches,
  suppression rules, policy, cancel token)
- **FindingStore (store)**: the working set of one finding kind
- **Stages**: small, composable filter steps registered by name
- **Pipelines**: ordered stage lists, one per finding kind
"""

from .context import CancelToken, FilterContext
from .pipelines import PIPELINES
from .registry import StageDefinition, get_stage, list_stages, register_stage
from .runner import run_pipeline, write_filter_manifest
from .stage import StageFunc, StageResult
from .store import FindingStore

__all__ = [
    "CancelToken",
    "FilterContext",
    "FindingStore",
    "PIPELINES",
    "StageDefinition",
    "StageFunc",
    "StageResult",
    "get_stage",
    "list_stages",
    "register_stage",
    "run_pipeline",
    "write_filter_manifest",
]
