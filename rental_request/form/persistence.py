"""
Local draft persistence.

Only the current lead id is persisted, under a single key, so a user who
leaves the form mid-way keeps updating the same remote lead when they
come back. The controller is the only writer.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)

LEAD_ID_KEY = "formID"


class DraftStore(Protocol):
    """Key-value port injected into the form controller."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryDraftStore:
    """Process-local store used by tests and the offline console demo."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileDraftStore:
    """Store backed by a small JSON object on disk, rewritten on each change."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.warning("Draft store %s is corrupt; starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
