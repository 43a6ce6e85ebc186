"""result_filter.io

Filesystem helpers shared by the CLI and the collaborator loaders.
"""

from __future__ import annotations

from .fs import read_json, read_json_object, write_json_atomic, write_text_atomic

__all__ = [
    "read_json",
    "read_json_object",
    "write_json_atomic",
    "write_text_atomic",
]
