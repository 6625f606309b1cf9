"""Key/value text stores standing in for the browser's local and session storage."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class SessionStorage:
    """In-memory storage; lives as long as the process (one browsing session)."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data


class LocalStorage(SessionStorage):
    """
    Persistent storage backed by a single JSON file.

    Every write rewrites the whole file (temp file + replace) so a crash
    never leaves half a document behind.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Unreadable storage file %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.error("Storage file %s does not hold an object, starting empty", self.path)
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def set_item(self, key: str, value: str) -> None:
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if key in self._data:
            super().remove_item(key)
            self._flush()

    def clear(self) -> None:
        super().clear()
        self._flush()
