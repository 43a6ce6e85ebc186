from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from result_filter.domain.finding import FindingKind

from .stage import StageFunc

_ALL_KINDS: Tuple[FindingKind, ...] = tuple(FindingKind)


@dataclass(frozen=True)
class StageDefinition:
    """Metadata describing a registered stage.

    ``kinds`` lists the finding kinds the stage understands. Pipelines are
    validated against it before anything runs, so a vulnerability-only stage
    (deduplication, fix-state) can never be wired into the secret pipeline by
    mistake.

    ``produces`` names the store keys the stage writes besides ``findings``.
    """

    name: str
    func: StageFunc

    description: str = ""
    kinds: Tuple[FindingKind, ...] = _ALL_KINDS
    produces: Tuple[str, ...] = ()


# Filled by the @register_stage decorators when result_filter.stages is
# imported; read-only afterwards.
_STAGE_REGISTRY: Dict[str, StageDefinition] = {}


def _coerce_keys(keys: Sequence[str] | None) -> Tuple[str, ...]:
    if not keys:
        return ()
    out: List[str] = []
    seen = set()
    for k in keys:
        s = str(k).strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return tuple(out)


def register_stage(
    name: str,
    *,
    description: str = "",
    kinds: Sequence[FindingKind] | None = None,
    produces: Sequence[str] | None = None,
):
    """Decorator to register a stage."""

    def _decorator(fn: StageFunc) -> StageFunc:
        if name in _STAGE_REGISTRY and _STAGE_REGISTRY[name].func is not fn:
            raise ValueError(f"Stage already registered: {name}")
        _STAGE_REGISTRY[name] = StageDefinition(
            name=name,
            func=fn,
            description=description,
            kinds=tuple(kinds) if kinds else _ALL_KINDS,
            produces=_coerce_keys(produces),
        )
        return fn

    return _decorator


def get_stage(name: str) -> StageDefinition:
    if name not in _STAGE_REGISTRY:
        raise KeyError(f"Unknown stage: {name}")
    return _STAGE_REGISTRY[name]


def list_stages(kind: Optional[FindingKind] = None) -> List[StageDefinition]:
    stages = sorted(_STAGE_REGISTRY.values(), key=lambda s: s.name)
    if kind:
        return [s for s in stages if kind in s.kinds]
    return stages
