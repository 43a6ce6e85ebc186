from __future__ import annotations

"""result_filter.policy.base

The policy contract.

A policy is any object with ``decide(fields) -> Verdict | bool | None``.
``fields`` is the flat map built by :func:`result_filter.domain.fields.field_map`.
A bool answers "ignore?" (True drops). Returning ``None`` means "no
opinion" and keeps the finding. Raising is allowed; the filter turns it
into a fatal PolicyEvaluationError.
"""

from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, Union


class Verdict(str, Enum):
    KEEP = "keep"
    DROP = "drop"


class Policy(Protocol):
    def decide(self, fields: Mapping[str, Any]) -> Union[Verdict, bool, None]:
        ...


class FunctionPolicy:
    """Adapt a plain ``ignore(fields) -> bool`` callable to :class:`Policy`.

    A truthy return drops the finding.
    """

    def __init__(self, ignore: Callable[[Mapping[str, Any]], bool], *, name: str = "") -> None:
        self._ignore = ignore
        self.name = name or getattr(ignore, "__name__", "function")

    def __repr__(self) -> str:
        return f"FunctionPolicy({self.name!r})"

    def decide(self, fields: Mapping[str, Any]) -> Optional[Verdict]:
        return Verdict.DROP if self._ignore(fields) else Verdict.KEEP
