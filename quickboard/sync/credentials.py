"""On-disk session credential."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from .client import Session

DEFAULT_CREDENTIALS_PATH = Path.home() / ".config" / "quickboard" / "session.json"


class CredentialStore:
    """Keeps the token and username between runs."""

    def __init__(self, path: Path = DEFAULT_CREDENTIALS_PATH):
        self.path = Path(path)

    def load(self) -> Session | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Session(token=data["token"], username=data["username"])
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {exc}")
            return None

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": session.token, "username": session.username}),
            encoding="utf-8",
        )
        self.path.chmod(0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
