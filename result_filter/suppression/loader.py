"""result_filter.suppression.loader

Load an ignore file into a :class:`SuppressionSource`.

Two formats are supported, selected by file suffix.

Plain text (``.trivyignore`` style, any suffix other than .yaml/.yml)::

    # comments start with '#'
    CVE-2019-0001
    CVE-2022-0002 exp:2030-01-01
    AVD-KSV-*

  One identifier (or glob) per line, applied to every finding kind. An
  optional ``exp:YYYY-MM-DD`` token makes the entry lapse after that date.

YAML (``.yaml`` / ``.yml``)::

    vulnerabilities:
      - id: CVE-2019-0001
        packages: [foo]
        expired_at: 2030-01-01
        statement: not reachable
    misconfigurations:
      - id: ID100
    secrets:
      - id: generic-*

  Entries are scoped to the section they appear in.

Expired entries are dropped at load time (and logged) so that matching stays
a pure function of the finding.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from result_filter.domain.finding import FindingKind
from result_filter.errors import SuppressionLoadError

from .rules import ALL_KINDS, IgnoreRule, SuppressionSource

logger = logging.getLogger(__name__)

_YAML_SECTIONS: Dict[str, FindingKind] = {
    "vulnerabilities": FindingKind.VULNERABILITY,
    "misconfigurations": FindingKind.MISCONFIGURATION,
    "secrets": FindingKind.SECRET,
}


def _parse_date(raw: Any, *, where: str) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw).strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise SuppressionLoadError(f"{where}: invalid expiry date {raw!r}") from e


def _as_str_tuple(v: Any) -> Tuple[str, ...]:
    if v is None:
        return ()
    if isinstance(v, (list, tuple)):
        return tuple(str(x).strip() for x in v if x is not None and str(x).strip())
    return (str(v).strip(),) if str(v).strip() else ()


def parse_ignore_lines(text: str, *, origin: str = "<ignore>") -> List[IgnoreRule]:
    """Parse the plain line format. Expired rules are NOT dropped here."""
    rules: List[IgnoreRule] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        tokens = line.split()
        rule_id = tokens[0]
        expires: Optional[date] = None
        for tok in tokens[1:]:
            if tok.startswith("exp:"):
                expires = _parse_date(tok[len("exp:"):], where=f"{origin}:{lineno}")
            else:
                logger.debug("%s:%d: ignoring unknown token %r", origin, lineno, tok)

        rules.append(
            IgnoreRule(
                id=rule_id,
                kinds=ALL_KINDS,
                expires=expires,
                origin=f"{origin}:{lineno}",
            )
        )
    return rules


def parse_ignore_yaml(data: Any, *, origin: str = "<ignore>") -> List[IgnoreRule]:
    """Parse an already loaded YAML ignore document. Expired rules are kept."""
    if data is None:
        return []
    if not isinstance(data, Mapping):
        raise SuppressionLoadError(f"{origin}: top level must be a mapping")

    rules: List[IgnoreRule] = []
    for section, kind in _YAML_SECTIONS.items():
        entries = data.get(section)
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise SuppressionLoadError(f"{origin}: '{section}' must be a list")

        for idx, entry in enumerate(entries):
            where = f"{origin}:{section}[{idx}]"
            if isinstance(entry, str):
                entry = {"id": entry}
            if not isinstance(entry, Mapping):
                raise SuppressionLoadError(f"{where}: entry must be a mapping or a string")

            rule_id = str(entry.get("id") or "").strip()
            if not rule_id:
                raise SuppressionLoadError(f"{where}: missing 'id'")

            packages = _as_str_tuple(entry.get("packages"))
            if packages and kind is not FindingKind.VULNERABILITY:
                raise SuppressionLoadError(f"{where}: 'packages' only applies to vulnerabilities")

            raw_exp = entry.get("expired_at")
            rules.append(
                IgnoreRule(
                    id=rule_id,
                    kinds=(kind,),
                    packages=packages,
                    expires=_parse_date(raw_exp, where=where) if raw_exp is not None else None,
                    statement=str(entry.get("statement") or ""),
                    origin=where,
                )
            )

    unknown = sorted(set(map(str, data.keys())) - set(_YAML_SECTIONS))
    if unknown:
        logger.warning("%s: ignoring unknown sections: %s", origin, ", ".join(unknown))
    return rules


def drop_expired(rules: List[IgnoreRule], *, today: date) -> List[IgnoreRule]:
    kept: List[IgnoreRule] = []
    for r in rules:
        if r.expired(today):
            logger.warning("Suppression rule %s (%s) expired on %s; not applied", r.id, r.origin, r.expires)
            continue
        kept.append(r)
    return kept


def load_ignore_file(path: Path, *, today: Optional[date] = None) -> SuppressionSource:
    """Load and validate an ignore file.

    Any IO or parse failure raises :class:`SuppressionLoadError`.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SuppressionLoadError(f"cannot read ignore file {p}: {e}") from e

    origin = p.name
    if p.suffix.lower() in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SuppressionLoadError(f"invalid YAML in ignore file {p}: {e}") from e
        rules = parse_ignore_yaml(data, origin=origin)
    else:
        rules = parse_ignore_lines(text, origin=origin)

    rules = drop_expired(rules, today=today or date.today())
    logger.debug("Loaded %d suppression rules from %s", len(rules), str(p))
    return SuppressionSource(rules, origin=str(p))
