"""File-based key-value storage for driver sessions."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional

from ..config import settings

_UNSAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class SessionStore:
    """Thin wrapper around the data root storing one JSON document per user."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.session_root = self.root / "sessions"
        self.session_root.mkdir(parents=True, exist_ok=True)

    def path_for(self, user_id: str) -> Path:
        key = _UNSAFE_KEY.sub("_", user_id.strip())
        if not key:
            raise ValueError("User id must not be empty.")
        return self.session_root / f"{key}.json"

    def load(self, user_id: str) -> Optional[dict[str, Any]]:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def save(self, user_id: str, state: dict[str, Any], *, indent: int = 2) -> Path:
        path = self.path_for(user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(state, handle, ensure_ascii=False, indent=indent)
        tmp_path.replace(path)
        return path

    def delete(self, user_id: str) -> bool:
        path = self.path_for(user_id)
        if not path.exists():
            return False
        path.unlink()
        return True
