"""Key-value settings store.

The core treats the store as blocking, fully consistent and single-writer:
last write wins per key, no transactions across keys.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """Read/write JSON-compatible blobs by key."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class JsonFileStore:
    """One JSON document per key under *root*.

    Writes go to a temp file in the same directory and are swapped in with
    :func:`os.replace`, so a crash never leaves a half-written document.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            msg = f"Invalid store key: {key!r}"
            raise ValueError(msg)
        return self._root / f"{key}.json"

    def get(self, key: str) -> Any:
        """Return the stored value, or None when the key was never set."""
        path = self._path(key)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Stored %s", key)
