"""Capacity-bounded key-value stores."""

import errno
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from examgen_core.errors import StorageQuotaExceeded, StorageWriteFailure
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStore(ABC):
    """String key-value storage with limited capacity."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            StorageQuotaExceeded: If the value does not fit
            StorageWriteFailure: If the write fails for another reason
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store, optionally limited to ``quota_bytes``."""

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(
                _entry_size(k, v) for k, v in self._values.items() if k != key
            )
            if used + _entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key} needs {_entry_size(key, value)} bytes, "
                    f"{self.quota_bytes - used} available"
                )
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """One UTF-8 JSON file per key inside a directory.

    ``quota_bytes`` bounds the total size of all keys in the directory.
    Writes go through a temporary file and an atomic rename.
    """

    def __init__(self, directory: Path | str, quota_bytes: int | None = None):
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def _used_bytes(self, excluding: Path) -> int:
        if not self.directory.exists():
            return 0
        return sum(
            path.stat().st_size
            for path in self.directory.glob("*.json")
            if path != excluding
        )

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        data = value.encode("utf-8")

        if self.quota_bytes is not None:
            used = self._used_bytes(excluding=path)
            if used + len(data) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key} needs {len(data)} bytes, "
                    f"{max(self.quota_bytes - used, 0)} available"
                )

        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self.directory, prefix=f".{key}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceeded(f"No space left to write {key}: {e}") from e
            raise StorageWriteFailure(f"Failed to write {key}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug(f"Wrote {len(data)} bytes to {path}")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
