"""File helpers for persisting serialized results."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _ensure_parent(path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def write_text_atomic(path: str | Path, text: str) -> Path:
    """Write ``text`` to ``path`` via a sibling temp file and an atomic rename.

    Readers see either the previous content or the complete new content.
    Raises ``OSError`` on any failure; the temp file is removed in that case.
    """
    target = Path(path)
    _ensure_parent(target)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return target


__all__ = ["write_text_atomic"]
