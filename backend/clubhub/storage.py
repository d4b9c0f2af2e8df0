import json
import os
from typing import Any


class MemoryStorage:
    """Process-local key/value storage."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._items: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._items.get(key)

    def set(self, key: str, value: Any) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """Key/value storage persisted as one JSON object on disk.

    Survives restarts the way browser local storage survives reloads.
    """

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError:
                return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, default=str)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
