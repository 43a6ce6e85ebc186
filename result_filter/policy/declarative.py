"""result_filter.policy.declarative

A small declarative policy language, written in YAML.

Example
-------
::

    version: 1
    ignore:
      - description: foo is vendored and patched in-tree
        kind: vulnerability
        when:
          all:
            - {field: package, equals: foo}
            - {field: id, in: [CVE-2019-0002, CVE-2019-0003]}
      - when:
          any:
            - {field: metadata.CVSS.score, lt: 4.0}
            - not: {field: fixed_version, empty: true}

A finding is dropped when any ``ignore`` rule matches it; otherwise the
policy has no opinion and the finding is kept.

Conditions
----------
- ``all: [cond, ...]`` / ``any: [cond, ...]`` / ``not: cond``
- leaf: ``{field: <name>, <op>: <operand>}`` with exactly one op:
  ``equals``, ``not_equals``, ``in``, ``glob``, ``regex``, ``empty``,
  ``gt``, ``gte``, ``lt``, ``lte``

Field names are the keys of the version-1 field map
(:mod:`result_filter.domain.fields`). Dots descend into nested mappings
(``metadata.CVSS.score``). A missing field makes a leaf false, except
``empty: true`` which treats a missing field as empty.

Everything structural is checked when the policy is compiled
(PolicyCompileError). The only evaluation-time failure is a numeric
comparison against a value that is not a number (PolicyEvaluationError).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from result_filter.domain.fields import FIELD_MAP_VERSION
from result_filter.domain.finding import FindingKind
from result_filter.errors import PolicyCompileError, PolicyEvaluationError

from .base import Verdict

logger = logging.getLogger(__name__)

_MISSING = object()

_NUMERIC_OPS: Dict[str, Callable[[float, float], bool]] = {
    "gt": lambda a, b: a > b,
    "gte": lambda a, b: a >= b,
    "lt": lambda a, b: a < b,
    "lte": lambda a, b: a <= b,
}
_LEAF_OPS = ("equals", "not_equals", "in", "glob", "regex", "empty") + tuple(_NUMERIC_OPS)


def _lookup(fields: Mapping[str, Any], path: str) -> Any:
    cur: Any = fields
    for part in path.split("."):
        if not isinstance(cur, Mapping) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _same(actual: Any, expected: Any) -> bool:
    if isinstance(expected, str):
        return str(actual) == expected
    return actual == expected


def _as_number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class FieldTest:
    field: str
    op: str
    operand: Any

    def __call__(self, fields: Mapping[str, Any]) -> bool:
        actual = _lookup(fields, self.field)

        if self.op == "empty":
            is_empty = actual is _MISSING or actual is None or actual == "" or actual == [] or actual == {}
            return is_empty == bool(self.operand)
        if actual is _MISSING:
            return False

        if self.op == "equals":
            return _same(actual, self.operand)
        if self.op == "not_equals":
            return not _same(actual, self.operand)
        if self.op == "in":
            return any(_same(actual, x) for x in self.operand)
        if self.op == "glob":
            return fnmatchcase(str(actual), self.operand)
        if self.op == "regex":
            return self.operand.search(str(actual)) is not None

        num = _as_number(actual)
        if num is None:
            raise PolicyEvaluationError(
                f"field '{self.field}' is not numeric ({actual!r}) for '{self.op}' comparison"
            )
        return _NUMERIC_OPS[self.op](num, self.operand)


@dataclass(frozen=True)
class AllOf:
    items: Tuple[Any, ...]

    def __call__(self, fields: Mapping[str, Any]) -> bool:
        return all(c(fields) for c in self.items)


@dataclass(frozen=True)
class AnyOf:
    items: Tuple[Any, ...]

    def __call__(self, fields: Mapping[str, Any]) -> bool:
        return any(c(fields) for c in self.items)


@dataclass(frozen=True)
class Not:
    item: Any

    def __call__(self, fields: Mapping[str, Any]) -> bool:
        return not self.item(fields)


@dataclass(frozen=True)
class PolicyRule:
    when: Any
    kind: Optional[FindingKind] = None
    description: str = ""

    def matches(self, fields: Mapping[str, Any]) -> bool:
        if self.kind is not None and fields.get("kind") != self.kind.value:
            return False
        return bool(self.when(fields))


def _compile_leaf(node: Mapping[str, Any], where: str) -> FieldTest:
    name = node.get("field")
    if not isinstance(name, str) or not name.strip():
        raise PolicyCompileError(f"{where}: 'field' must be a non-empty string")

    ops = [k for k in node.keys() if k != "field"]
    if len(ops) != 1 or ops[0] not in _LEAF_OPS:
        raise PolicyCompileError(
            f"{where}: expected exactly one operator out of {', '.join(_LEAF_OPS)}; got {ops}"
        )
    op = ops[0]
    operand = node[op]

    if op == "in":
        if not isinstance(operand, list):
            raise PolicyCompileError(f"{where}: 'in' expects a list")
        operand = tuple(operand)
    elif op == "glob":
        if not isinstance(operand, str):
            raise PolicyCompileError(f"{where}: 'glob' expects a string")
    elif op == "regex":
        if not isinstance(operand, str):
            raise PolicyCompileError(f"{where}: 'regex' expects a string")
        try:
            operand = re.compile(operand)
        except re.error as e:
            raise PolicyCompileError(f"{where}: invalid regex {node[op]!r}: {e}") from e
    elif op == "empty":
        if not isinstance(operand, bool):
            raise PolicyCompileError(f"{where}: 'empty' expects true or false")
    elif op in _NUMERIC_OPS:
        num = _as_number(operand)
        if num is None:
            raise PolicyCompileError(f"{where}: '{op}' expects a number")
        operand = num

    return FieldTest(field=name.strip(), op=op, operand=operand)


def _compile_condition(node: Any, where: str) -> Any:
    if not isinstance(node, Mapping):
        raise PolicyCompileError(f"{where}: condition must be a mapping")

    if "all" in node or "any" in node:
        key = "all" if "all" in node else "any"
        if len(node) != 1:
            raise PolicyCompileError(f"{where}: '{key}' cannot be combined with other keys")
        items = node[key]
        if not isinstance(items, list) or not items:
            raise PolicyCompileError(f"{where}: '{key}' expects a non-empty list")
        compiled = tuple(_compile_condition(c, f"{where}.{key}[{i}]") for i, c in enumerate(items))
        return AllOf(compiled) if key == "all" else AnyOf(compiled)

    if "not" in node:
        if len(node) != 1:
            raise PolicyCompileError(f"{where}: 'not' cannot be combined with other keys")
        return Not(_compile_condition(node["not"], f"{where}.not"))

    return _compile_leaf(node, where)


class DeclarativePolicy:
    """Compiled declarative policy. Drops a finding if any ignore rule matches."""

    def __init__(self, rules: List[PolicyRule], *, origin: str = "") -> None:
        self.rules = list(rules)
        self.origin = origin

    def __repr__(self) -> str:
        return f"DeclarativePolicy(rules={len(self.rules)}, origin={self.origin!r})"

    def decide(self, fields: Mapping[str, Any]) -> Optional[Verdict]:
        version = fields.get("schema_version", FIELD_MAP_VERSION)
        if version != FIELD_MAP_VERSION:
            raise PolicyEvaluationError(f"unsupported field map version {version!r}")
        for rule in self.rules:
            if rule.matches(fields):
                return Verdict.DROP
        return None


def compile_policy_document(data: Any, *, origin: str = "<policy>") -> DeclarativePolicy:
    """Compile an already parsed policy document."""
    if not isinstance(data, Mapping):
        raise PolicyCompileError(f"{origin}: policy must be a mapping")

    version = data.get("version", 1)
    if version != 1:
        raise PolicyCompileError(f"{origin}: unsupported policy version {version!r}")

    raw_rules = data.get("ignore")
    if raw_rules is None:
        raw_rules = []
    if not isinstance(raw_rules, list):
        raise PolicyCompileError(f"{origin}: 'ignore' must be a list")

    kinds = {k.value: k for k in FindingKind}
    rules: List[PolicyRule] = []
    for idx, raw in enumerate(raw_rules):
        where = f"{origin}:ignore[{idx}]"
        if not isinstance(raw, Mapping):
            raise PolicyCompileError(f"{where}: rule must be a mapping")
        if "when" not in raw:
            raise PolicyCompileError(f"{where}: missing 'when'")

        kind = None
        if raw.get("kind") is not None:
            kind = kinds.get(str(raw["kind"]).strip().lower())
            if kind is None:
                raise PolicyCompileError(f"{where}: unknown kind {raw['kind']!r}")

        rules.append(
            PolicyRule(
                when=_compile_condition(raw["when"], f"{where}.when"),
                kind=kind,
                description=str(raw.get("description") or ""),
            )
        )

    logger.debug("Compiled policy %s with %d ignore rules", origin, len(rules))
    return DeclarativePolicy(rules, origin=origin)


def compile_policy(source: Union[str, Path, Mapping[str, Any]]) -> DeclarativePolicy:
    """Compile a policy from a YAML file path or a parsed mapping."""
    if isinstance(source, Mapping):
        return compile_policy_document(source)

    p = Path(source)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyCompileError(f"cannot read policy file {p}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PolicyCompileError(f"invalid YAML in policy file {p}: {e}") from e
    return compile_policy_document(data, origin=p.name)
