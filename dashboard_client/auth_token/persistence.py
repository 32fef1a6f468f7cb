"""Key/value backends the token store persists through.

``MemoryBackend`` keeps values for the lifetime of the process.
``JsonFileBackend`` keeps them in a small JSON object on disk so a token
survives restarts, the way browser local storage survives page reloads.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol


class KeyValueBackend(Protocol):
    """Minimal synchronous string key/value store."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryBackend:
    """Process-local backend."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileBackend:
    """Backend persisting a flat JSON object with atomic replace-on-write.

    Writers serialise on a sibling ``.lock`` file, which is left in place.
    Reads are cached against the file's mtime and size so repeated ``get_item``
    calls on the hot request path do not hit the disk.
    """

    def __init__(self, path: str | os.PathLike[str]):
        """Initialize the backend.

        Args:
            path: Path to the JSON file. Created on first write.
        """
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)
        self._file_mtime: float | None = None
        self._file_size: int | None = None
        self._cached: dict[str, str] | None = None

    def get_item(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        def _apply(items: dict[str, str]) -> bool:
            items[key] = value
            return True

        self._update(_apply)

    def remove_item(self, key: str) -> None:
        def _apply(items: dict[str, str]) -> bool:
            return items.pop(key, None) is not None

        self._update(_apply)

    def _load(self) -> dict[str, str]:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            self._invalidate_cache()
            return {}
        if (
            self._cached is not None
            and self._file_mtime == st.st_mtime
            and self._file_size == st.st_size
        ):
            return self._cached
        items = self._read_file()
        self._cached = items
        self._file_mtime = st.st_mtime
        self._file_size = st.st_size
        return items

    def _read_file(self) -> dict[str, str]:
        """Read the JSON object from disk, bypassing the cache."""
        try:
            with open(self.path, encoding="utf-8") as f:
                raw: Any = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.error(f"💥 Token store load error path={self.path}: {type(e).__name__}")
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    def _invalidate_cache(self) -> None:
        self._cached = None
        self._file_mtime = None
        self._file_size = None

    def _prepare_dir(self) -> None:
        """Create the parent directory if it doesn't exist (never world-writable)."""
        store_dir = os.path.dirname(self.path)
        if store_dir and not os.path.exists(store_dir):
            os.makedirs(store_dir, exist_ok=True)
            try:
                current_mode = stat.S_IMODE(os.lstat(store_dir).st_mode)
                if current_mode != 0o700:
                    os.chmod(store_dir, 0o700)
            except (PermissionError, FileNotFoundError):
                pass

    def _update(self, apply: Callable[[dict[str, str]], bool]) -> None:
        """Read, modify and atomically rewrite the file under an exclusive lock.

        The file is re-read after the lock is taken, so a change written by
        another process in the meantime is preserved.

        Args:
            apply: Mutates the mapping in place; returns False to skip the write.
        """
        self._prepare_dir()
        store_path = Path(self.path)
        lock_path = store_path.with_suffix(".lock")
        temp_path: str | None = None
        try:
            with open(lock_path, "w", encoding="utf-8") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                items = self._read_file()
                if not apply(items):
                    return
                with tempfile.NamedTemporaryFile(
                    mode="w",
                    dir=store_path.parent,
                    prefix=f".{store_path.name}.",
                    suffix=".tmp",
                    delete=False,
                    encoding="utf-8",
                ) as tmp:
                    json.dump(items, tmp, indent=2)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                    temp_path = tmp.name
                os.chmod(temp_path, 0o600)
                os.replace(temp_path, self.path)
                logging.debug(f"💾 Token store saved keys={len(items)}")
        except (OSError, ValueError) as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            logging.error(f"💥 Atomic token store save failed: {type(e).__name__}")
            raise
        finally:
            self._invalidate_cache()
