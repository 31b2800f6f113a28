"""Whole-file writes."""

from __future__ import annotations

import os
from pathlib import Path
from tempfile import NamedTemporaryFile


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to a temp file beside ``path`` and rename it over ``path``.

    Readers see either the old file or the new one, never a partial write.
    Raises OSError; the temp file is removed on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_file = None
    try:
        with NamedTemporaryFile(
            "w", encoding="utf-8", delete=False, dir=str(path.parent),
            prefix=f".{path.stem[:32]}-", suffix=".tmp",
        ) as tmp:
            tmp_file = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_file, path)
    except OSError:
        if tmp_file and os.path.exists(tmp_file):
            os.unlink(tmp_file)
        raise
