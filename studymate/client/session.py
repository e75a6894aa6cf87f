"""Client-side session context.

The token lives in a small JSON file (the client's "local storage") and is
reached only through a `Session` object that the API client receives
explicitly. Losing the session goes through exactly one transition,
`Session.invalidate()`, which clears the stored token and notifies every
registered listener (typically the UI hook that shows the login screen).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional


def _debug(msg: str) -> None:
    print(f"[client] {msg}")


TOKEN_KEY = "studymate_auth_token"
THEME_KEY = "theme"


class TokenStore:
    """Persistent key/value storage backed by one JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            _debug(f"Ignoring unreadable session file: {self.path}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


InvalidateListener = Callable[[str], None]


class Session:
    def __init__(self, store: TokenStore):
        self.store = store
        self._listeners: List[InvalidateListener] = []

    @property
    def token(self) -> Optional[str]:
        t = self.store.get(TOKEN_KEY)
        return str(t) if t else None

    @property
    def is_active(self) -> bool:
        return self.token is not None

    def start(self, token: str) -> None:
        if not token:
            raise ValueError("token_blank")
        self.store.set(TOKEN_KEY, token)

    def on_invalidate(self, listener: InvalidateListener) -> None:
        """Register a callback run (with a reason code) whenever the session ends."""
        self._listeners.append(listener)

    def invalidate(self, reason: str = "logout") -> None:
        self.store.remove(TOKEN_KEY)
        _debug(f"Session invalidated: {reason}")
        for listener in list(self._listeners):
            listener(reason)
