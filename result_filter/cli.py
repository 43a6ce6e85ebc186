#!/usr/bin/env python3
"""
Command-line wrapper around the result filter.

Reads raw findings from JSON, filters them, writes the reportable set.

Usage:
  result-filter --input findings.json
  result-filter --input findings.json --severity CRITICAL,HIGH --ignore-unfixed
  result-filter --input findings.json --ignorefile .trivyignore --policy policy.yaml --output filtered.json
  python -m result_filter --input findings.json --config result-filter.yaml --manifest manifest.json

Input document:
  {"vulnerabilities": [...], "misconfigurations": [...], "secrets": [...]}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from result_filter.config import load_env_file, load_options
from result_filter.domain.finding import MisconfigurationFinding, SecretFinding, VulnerabilityFinding
from result_filter.errors import FilterError
from result_filter.filter import filter_with_options
from result_filter.framework import CancelToken, write_filter_manifest
from result_filter.io.fs import read_json_object, write_json_atomic

logger = logging.getLogger("result_filter")

EXIT_FILTER_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Filter scanner findings down to the reportable set.")

    parser.add_argument("--input", "-i", required=True, help="JSON file with raw findings ('-' for stdin)")
    parser.add_argument("--output", "-o", help="Write filtered JSON here (default: stdout)")
    parser.add_argument("--severity", help="Comma separated severities to report, e.g. CRITICAL,HIGH")
    parser.add_argument("--ignore-unfixed", action="store_true", default=None, help="Drop vulnerabilities without a fix")
    parser.add_argument(
        "--include-non-failures",
        action="store_true",
        default=None,
        help="Keep PASS / EXCEPTION misconfigurations in the output",
    )
    parser.add_argument("--ignorefile", help="Suppression list (.trivyignore style or YAML)")
    parser.add_argument("--policy", help="Declarative policy (YAML)")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--env-file", default=".env", help="Optional .env file with RESULT_FILTER_* variables")
    parser.add_argument("--timeout", type=float, help="Abort filtering after this many seconds")
    parser.add_argument("--manifest", help="Write a per-stage manifest JSON here")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return parser.parse_args(argv)


def _load_input(path: str) -> Mapping[str, Any]:
    try:
        if path != "-":
            return read_json_object(Path(path))
        data = json.load(sys.stdin)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Cannot read input {path}: {e}")
    if not isinstance(data, Mapping):
        raise SystemExit(f"Input must be a JSON object: {path}")
    return data


def _section(data: Mapping[str, Any], *keys: str) -> List[Dict[str, Any]]:
    for k in keys:
        v = data.get(k)
        if v is None:
            continue
        if not isinstance(v, list):
            raise SystemExit(f"Input field '{k}' must be a list")
        return v
    return []


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    load_env_file(Path(args.env_file) if args.env_file else None)

    data = _load_input(args.input)
    try:
        vulns = [VulnerabilityFinding.from_dict(d) for d in _section(data, "vulnerabilities", "Vulnerabilities")]
        misconfs = [
            MisconfigurationFinding.from_dict(d) for d in _section(data, "misconfigurations", "Misconfigurations")
        ]
        secrets = [SecretFinding.from_dict(d) for d in _section(data, "secrets", "Secrets")]
    except (TypeError, ValueError) as e:
        raise SystemExit(f"Invalid finding in {args.input}: {e}")

    try:
        options = load_options(
            Path(args.config) if args.config else None,
            overrides={
                "severities": args.severity,
                "ignore_unfixed": args.ignore_unfixed,
                "include_non_failures": args.include_non_failures,
                "ignore_file": args.ignorefile,
                "policy_file": args.policy,
                "timeout_seconds": args.timeout,
            },
        )
        logger.debug("Options: %s", options.as_dict())
        result = filter_with_options(
            options,
            vulns,
            misconfs,
            secrets,
            cancel_token=CancelToken.with_timeout(options.timeout_seconds),
        )
    except FilterError as e:
        print(f"result-filter: {e}", file=sys.stderr)
        return EXIT_FILTER_ERROR

    payload = result.to_dict()
    if args.output:
        write_json_atomic(Path(args.output), payload)
        logger.info("Wrote %s", args.output)
    else:
        json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")

    if args.manifest:
        write_filter_manifest(options.as_dict(), stage_results=result.stage_results, path=Path(args.manifest))
        logger.info("Wrote %s", args.manifest)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
