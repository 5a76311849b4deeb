"""
client/storage.py -- JSON file persistence for an authenticated client session.

Only authenticated sessions are ever written. The file is created with
owner-only permissions because it holds a bearer token.

Usage:
    storage = SessionStorage(Path("~/.userauth/session.json").expanduser())
    storage.save(state)
    state = storage.load()   # SessionState or None
    storage.clear()
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from client.session import SessionState, Status

logger = logging.getLogger("userauth.client")

DEFAULT_SESSION_PATH = Path.home() / ".userauth" / "session.json"


class SessionStorage:
    def __init__(self, path: Path = DEFAULT_SESSION_PATH) -> None:
        self.path = path

    def load(self) -> Optional[SessionState]:
        """Return the persisted authenticated session, or None.

        A missing file means no session. An unreadable or malformed file is
        logged and treated the same way.
        """
        if not self.path.is_file():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None
        if not isinstance(data, dict) or not data.get("token") or not isinstance(data.get("user"), dict):
            logger.warning("Ignoring malformed session file %s", self.path)
            return None
        return SessionState(status=Status.AUTHENTICATED, user=data["user"], token=data["token"])

    def save(self, state: SessionState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump({"user": state.user, "token": state.token}, fh)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
