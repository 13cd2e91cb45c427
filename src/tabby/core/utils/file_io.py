"""
File I/O utilities: atomic replace-on-write.

All functions operate on explicit paths; there are no implicit directory lookups.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(filepath: str | Path, content: str | bytes, encoding: str = "utf-8") -> Path:
    """Write *content* to *filepath* so readers never observe a partial file.

    The data goes to a temporary file in the same directory, is flushed to
    disk, and then renamed over the target. Parent directories are created.
    """
    path = Path(filepath).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode(encoding) if isinstance(content, str) else content

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return path
