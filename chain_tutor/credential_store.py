"""Single key/value entry holding the user-supplied Gemini key on local disk."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)

USER_API_KEY_ENTRY = "abaii_user_gemini_api_key_alerts"


class CredentialStore:
    """Plain-text JSON store, one entry. Other keys in the file are preserved."""

    def __init__(self, path: Path, key: str = USER_API_KEY_ENTRY) -> None:
        self.path = path
        self.key = key

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable credential file", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def load(self) -> Optional[str]:
        value = self._read_all().get(self.key)
        if isinstance(value, str) and value:
            return value
        return None

    def save(self, value: str) -> None:
        data = self._read_all()
        data[self.key] = value
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if self.key in data:
            del data[self.key]
            self._write_all(data)
