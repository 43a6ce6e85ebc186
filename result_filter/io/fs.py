"""result_filter.io.fs

Filesystem helpers for filter inputs and outputs.

Filtered result sets and stage manifests are consumed by CI gates and report
renderers. Outputs are serialized in memory first, written to a temp file
next to the destination and moved into place with ``os.replace()``: readers
see either the previous file or the complete new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping

logger = logging.getLogger(__name__)


@contextmanager
def _temp_sibling(dest: Path) -> Iterator[Path]:
    """Yield a temp path in ``dest``'s directory; remove it if still present on exit."""
    fd, name = tempfile.mkstemp(prefix=f"{dest.name}.", suffix=".tmp", dir=str(dest.parent))
    os.close(fd)
    tmp = Path(name)
    try:
        yield tmp
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError as e:
                logger.warning("Failed to remove temp file %s: %s", str(tmp), e)


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``text`` in one step. Parent directories are created."""
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)

    with _temp_sibling(dest) as tmp:
        with tmp.open("w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, dest)


def write_json_atomic(
    path: Path,
    data: Any,
    *,
    indent: int = 2,
    sort_keys: bool = False,
    ensure_ascii: bool = False,
) -> None:
    """Serialize ``data`` and write it atomically.

    ``sort_keys`` defaults to False: finding lists are already in their
    output order and per-finding key order mirrors the report schema.
    Serialization errors surface before anything touches the disk.
    """
    text = json.dumps(data, indent=indent, sort_keys=sort_keys, ensure_ascii=ensure_ascii) + "\n"
    write_text_atomic(Path(path), text)


def read_json(path: Path, *, encoding: str = "utf-8") -> Any:
    with Path(path).open("r", encoding=encoding) as f:
        return json.load(f)


def read_json_object(path: Path) -> Mapping[str, Any]:
    """Read a JSON document whose top level must be an object."""
    data = read_json(path)
    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
    return data
