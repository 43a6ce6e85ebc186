"""result_filter.suppression

User suppression lists ("ignore files").
"""

from __future__ import annotations

from .loader import load_ignore_file, parse_ignore_lines, parse_ignore_yaml
from .rules import IgnoreRule, SuppressionRule, SuppressionSource

__all__ = [
    "IgnoreRule",
    "SuppressionRule",
    "SuppressionSource",
    "load_ignore_file",
    "parse_ignore_lines",
    "parse_ignore_yaml",
]
