"""result_filter.config

Filter options and where they come from.

Precedence, lowest first:

1. defaults
2. a YAML config file
3. ``RESULT_FILTER_*`` environment variables (a ``.env`` file can seed them)
4. explicit overrides (CLI flags)

Config file example::

    severity: [CRITICAL, HIGH]
    ignore_unfixed: true
    include_non_failures: false
    ignorefile: .trivyignore
    policy: policy.yaml
    timeout: 30
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml
from dotenv import load_dotenv

from result_filter.domain.severity import SEVERITY_ORDER, Severity, parse_severities
from result_filter.errors import InvalidFilterConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "RESULT_FILTER_"

# config-file key -> option field
_FILE_KEYS: Dict[str, str] = {
    "severity": "severities",
    "ignore_unfixed": "ignore_unfixed",
    "include_non_failures": "include_non_failures",
    "ignorefile": "ignore_file",
    "policy": "policy_file",
    "timeout": "timeout_seconds",
}

_ENV_KEYS: Dict[str, str] = {
    f"{ENV_PREFIX}SEVERITY": "severities",
    f"{ENV_PREFIX}IGNORE_UNFIXED": "ignore_unfixed",
    f"{ENV_PREFIX}INCLUDE_NON_FAILURES": "include_non_failures",
    f"{ENV_PREFIX}IGNOREFILE": "ignore_file",
    f"{ENV_PREFIX}POLICY": "policy_file",
    f"{ENV_PREFIX}TIMEOUT": "timeout_seconds",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _as_bool(v: Any, *, name: str) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise InvalidFilterConfigError(f"{name}: expected a boolean, got {v!r}")


def _as_timeout(v: Any, *, name: str) -> Optional[float]:
    if v is None or v == "":
        return None
    try:
        t = float(v)
    except (TypeError, ValueError) as e:
        raise InvalidFilterConfigError(f"{name}: expected seconds, got {v!r}") from e
    if t < 0:
        raise InvalidFilterConfigError(f"{name}: timeout must not be negative")
    return t or None


def _as_path(v: Any) -> Optional[Path]:
    if v is None or str(v).strip() == "":
        return None
    return Path(str(v).strip())


@dataclass(frozen=True)
class FilterOptions:
    """Resolved filter configuration."""

    severities: FrozenSet[Severity] = frozenset(SEVERITY_ORDER)
    ignore_unfixed: bool = False
    include_non_failures: bool = False
    ignore_file: Optional[Path] = None
    policy_file: Optional[Path] = None
    timeout_seconds: Optional[float] = None

    @staticmethod
    def build(
        *,
        severities: Any = None,
        ignore_unfixed: Any = False,
        include_non_failures: Any = False,
        ignore_file: Any = None,
        policy_file: Any = None,
        timeout_seconds: Any = None,
    ) -> "FilterOptions":
        return FilterOptions(
            severities=parse_severities(severities) if severities is not None else frozenset(SEVERITY_ORDER),
            ignore_unfixed=_as_bool(ignore_unfixed, name="ignore_unfixed"),
            include_non_failures=_as_bool(include_non_failures, name="include_non_failures"),
            ignore_file=_as_path(ignore_file),
            policy_file=_as_path(policy_file),
            timeout_seconds=_as_timeout(timeout_seconds, name="timeout"),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "severities": [s.value for s in SEVERITY_ORDER if s in self.severities],
            "ignore_unfixed": self.ignore_unfixed,
            "include_non_failures": self.include_non_failures,
            "ignore_file": str(self.ignore_file) if self.ignore_file else None,
            "policy_file": str(self.policy_file) if self.policy_file else None,
            "timeout_seconds": self.timeout_seconds,
        }


def load_env_file(dotenv_path: Optional[Path]) -> bool:
    """Load KEY=VALUE pairs from a .env file. Exported variables win."""
    if dotenv_path is None or not Path(dotenv_path).exists():
        return False
    return load_dotenv(dotenv_path, override=False)


def _read_config_file(path: Path) -> Dict[str, Any]:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidFilterConfigError(f"cannot read config file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise InvalidFilterConfigError(f"invalid YAML in config file {p}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise InvalidFilterConfigError(f"config file {p}: top level must be a mapping")

    out: Dict[str, Any] = {}
    for key, value in data.items():
        field_name = _FILE_KEYS.get(str(key))
        if field_name is None:
            logger.warning("config file %s: ignoring unknown key %r", str(p), key)
            continue
        out[field_name] = value

    # Relative file references resolve against the config file's directory.
    for field_name in ("ignore_file", "policy_file"):
        ref = _as_path(out.get(field_name))
        if ref is not None and not ref.is_absolute():
            out[field_name] = p.parent / ref
    return out


def _read_env(env: Mapping[str, str]) -> Dict[str, Any]:
    return {field_name: env[name] for name, field_name in _ENV_KEYS.items() if name in env}


def load_options(
    config_path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> FilterOptions:
    """Merge defaults, config file, environment and overrides into options.

    ``overrides`` entries whose value is None are treated as "not given".
    """
    merged: Dict[str, Any] = {}
    if config_path is not None:
        merged.update(_read_config_file(Path(config_path)))
    merged.update(_read_env(os.environ if env is None else env))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    unknown = sorted(set(merged) - set(_FILE_KEYS.values()))
    if unknown:
        raise InvalidFilterConfigError(f"unknown option(s): {', '.join(unknown)}")

    return FilterOptions.build(**merged)
