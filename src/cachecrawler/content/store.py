from __future__ import annotations

import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol

_STORE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, blob: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


def _require_store_key(key: str) -> str:
    if not isinstance(key, str) or not _STORE_KEY_PATTERN.match(key):
        raise ValueError(f"store key must match {_STORE_KEY_PATTERN.pattern}: {key!r}")
    return key


class MemoryStore:
    """In-process store; mostly for tests and headless runs."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._blobs.get(_require_store_key(key))

    def put(self, key: str, blob: bytes) -> None:
        self._blobs[_require_store_key(key)] = bytes(blob)

    def delete(self, key: str) -> None:
        self._blobs.pop(_require_store_key(key), None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)


class FileStore:
    """One ``<key>.json`` file per key under ``directory``, written atomically."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_require_store_key(key)}.json"

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def put(self, key: str, blob: bytes) -> None:
        destination = self.path_for(key)
        destination.parent.mkdir(parents=True, exist_ok=True)

        temp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="wb",
                dir=destination.parent,
                delete=False,
                suffix=".tmp",
            ) as temp_file:
                temp_file.write(blob)
                temp_file.flush()
                os.fsync(temp_file.fileno())
                temp_path = Path(temp_file.name)
            os.replace(temp_path, destination)
        except Exception:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
