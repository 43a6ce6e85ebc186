"""result_filter.domain.finding

Finding types that flow through the filter pipelines.

Three kinds exist, one dataclass each:

* :class:`VulnerabilityFinding` - an advisory matched against an installed package
* :class:`MisconfigurationFinding` - a config check result (fail / pass / exception)
* :class:`SecretFinding` - a secret detected in file content

All of them are frozen. Stages never mutate a finding in place; they build a
new one with :func:`dataclasses.replace` when a field changes (severity
normalization is the only such case).

``from_dict`` / ``to_dict`` are the conversion boundary to and from JSON. The
wire keys follow the scanner report schema (``VulnerabilityID``,
``PkgName``...) but snake_case keys are accepted too so hand-written fixtures
stay readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union


class FindingKind(str, Enum):
    VULNERABILITY = "vulnerability"
    MISCONFIGURATION = "misconfiguration"
    SECRET = "secret"


class MisconfStatus(str, Enum):
    FAILURE = "FAIL"
    SUCCESS = "PASS"
    EXCEPTION = "EXCEPTION"

    @classmethod
    def parse(cls, raw: Union[str, "MisconfStatus", None]) -> "MisconfStatus":
        if isinstance(raw, MisconfStatus):
            return raw
        s = str(raw or "").strip().upper()
        if s in ("FAIL", "FAILURE", "FAILED"):
            return cls.FAILURE
        if s in ("PASS", "PASSED", "SUCCESS"):
            return cls.SUCCESS
        if s == "EXCEPTION":
            return cls.EXCEPTION
        raise ValueError(f"unknown misconfiguration status: {raw!r}")


def _pick(d: Mapping[str, Any], *keys: str, default: Any = "") -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def _safe_int(v: Any) -> int:
    # bool is a subclass of int; treat as invalid.
    if v is None or isinstance(v, bool):
        return 0
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class VulnerabilityFinding:
    vulnerability_id: str
    pkg_name: str
    installed_version: str
    fixed_version: str = ""
    severity: str = ""
    title: str = ""
    # Advisory data (CVSS, references, descriptions...). Carried through as-is.
    metadata: Mapping[str, Any] = field(default_factory=dict)

    KIND = FindingKind.VULNERABILITY

    @property
    def identity_key(self) -> tuple:
        return (self.vulnerability_id, self.pkg_name, self.installed_version)

    @property
    def has_fix(self) -> bool:
        return bool(self.fixed_version)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "VulnerabilityFinding":
        if not isinstance(d, Mapping):
            raise TypeError(f"VulnerabilityFinding.from_dict expected mapping, got {type(d)!r}")

        known = {
            "VulnerabilityID", "vulnerability_id", "id",
            "PkgName", "pkg_name", "package",
            "InstalledVersion", "installed_version",
            "FixedVersion", "fixed_version",
            "Severity", "severity",
            "Title", "title",
            "Metadata", "metadata",
        }
        meta = _pick(d, "Metadata", "metadata", default=None)
        meta = dict(meta) if isinstance(meta, Mapping) else {}
        # Unknown keys are advisory data too.
        for k, v in d.items():
            if k not in known:
                meta.setdefault(k, v)

        return cls(
            vulnerability_id=str(_pick(d, "VulnerabilityID", "vulnerability_id", "id")),
            pkg_name=str(_pick(d, "PkgName", "pkg_name", "package")),
            installed_version=str(_pick(d, "InstalledVersion", "installed_version")),
            fixed_version=str(_pick(d, "FixedVersion", "fixed_version")),
            severity=str(_pick(d, "Severity", "severity")),
            title=str(_pick(d, "Title", "title")),
            metadata=meta,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "VulnerabilityID": self.vulnerability_id,
            "PkgName": self.pkg_name,
            "InstalledVersion": self.installed_version,
            "FixedVersion": self.fixed_version,
            "Severity": self.severity,
        }
        if self.title:
            out["Title"] = self.title
        if self.metadata:
            out["Metadata"] = dict(self.metadata)
        return out


@dataclass(frozen=True)
class MisconfigurationFinding:
    type: str
    id: str
    title: str = ""
    message: str = ""
    severity: str = ""
    status: MisconfStatus = MisconfStatus.FAILURE
    # Alternate rule identifier (e.g. an AVD ID). Suppression matches either.
    avd_id: str = ""

    KIND = FindingKind.MISCONFIGURATION

    def __post_init__(self) -> None:
        # Accept "FAIL" / "PASS" / ... strings from callers.
        object.__setattr__(self, "status", MisconfStatus.parse(self.status))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "MisconfigurationFinding":
        if not isinstance(d, Mapping):
            raise TypeError(f"MisconfigurationFinding.from_dict expected mapping, got {type(d)!r}")
        return cls(
            type=str(_pick(d, "Type", "type")),
            id=str(_pick(d, "ID", "id")),
            title=str(_pick(d, "Title", "title")),
            message=str(_pick(d, "Message", "message")),
            severity=str(_pick(d, "Severity", "severity")),
            status=_pick(d, "Status", "status", default="FAIL"),
            avd_id=str(_pick(d, "AVDID", "avd_id")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "Type": self.type,
            "ID": self.id,
            "Title": self.title,
            "Message": self.message,
            "Severity": self.severity,
            "Status": self.status.value,
        }
        if self.avd_id:
            out["AVDID"] = self.avd_id
        return out


@dataclass(frozen=True)
class SecretFinding:
    rule_id: str
    severity: str = ""
    title: str = ""
    start_line: int = 0
    end_line: int = 0
    match: str = ""
    category: str = ""

    KIND = FindingKind.SECRET

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SecretFinding":
        if not isinstance(d, Mapping):
            raise TypeError(f"SecretFinding.from_dict expected mapping, got {type(d)!r}")
        return cls(
            rule_id=str(_pick(d, "RuleID", "rule_id")),
            severity=str(_pick(d, "Severity", "severity")),
            title=str(_pick(d, "Title", "title")),
            start_line=_safe_int(_pick(d, "StartLine", "start_line", default=None)),
            end_line=_safe_int(_pick(d, "EndLine", "end_line", default=None)),
            match=str(_pick(d, "Match", "match")),
            category=str(_pick(d, "Category", "category")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "RuleID": self.rule_id,
            "Severity": self.severity,
            "Title": self.title,
            "StartLine": self.start_line,
            "EndLine": self.end_line,
            "Match": self.match,
        }
        if self.category:
            out["Category"] = self.category
        return out


Finding = Union[VulnerabilityFinding, MisconfigurationFinding, SecretFinding]


def finding_id(f: Finding) -> str:
    """Primary identifier of any finding kind (used in logs and errors)."""
    if isinstance(f, VulnerabilityFinding):
        return f.vulnerability_id
    if isinstance(f, MisconfigurationFinding):
        return f.id
    return f.rule_id


@dataclass(frozen=True)
class MisconfSummary:
    """Status counts over one filtered misconfiguration set."""

    successes: int = 0
    failures: int = 0
    exceptions: int = 0

    @property
    def total(self) -> int:
        return self.successes + self.failures + self.exceptions

    def to_dict(self) -> Dict[str, int]:
        return {
            "Successes": self.successes,
            "Failures": self.failures,
            "Exceptions": self.exceptions,
        }
