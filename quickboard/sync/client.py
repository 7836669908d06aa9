"""HTTP client for the board service."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Final
from urllib import error, request

from loguru import logger

from ..board.model import Board

USER_AGENT: Final[str] = "quickboard/0.1"
AUTH_FAILURE_STATUSES: Final[frozenset[int]] = frozenset({401, 403})


class SyncError(RuntimeError):
    """Base class for failures talking to the board service."""


class AuthError(SyncError):
    """The credential was missing, invalid or expired."""


class TransportError(SyncError):
    """Network failure, timeout, non-success status or unreadable body."""


class AccountError(SyncError):
    """Register or login was refused; the message comes from the server."""


@dataclass(frozen=True)
class Session:
    """A logged-in user's credential."""

    token: str
    username: str


def _decode_snippet(data: bytes) -> str:
    return data[:200].decode("utf-8", "replace")


class BoardClient:
    """
    Talks JSON over HTTP to the board service.

    Args:
        base_url: Service root, e.g. ``http://localhost:8765``
        token: Bearer credential sent with board requests
        timeout: Per-request timeout in seconds
    """

    def __init__(self, base_url: str, token: str | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _send(
        self,
        method: str,
        path: str,
        payload: Any = None,
        authenticated: bool = True,
    ) -> tuple[int, Any]:
        """Perform a request and return ``(status, decoded body)``.

        HTTP error statuses are returned, not raised; only network level
        failures raise :class:`TransportError`.
        """
        url = f"{self.base_url}{path}"
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        request_obj = request.Request(url, data=data, headers=headers, method=method)
        try:
            with request.urlopen(request_obj, timeout=self.timeout) as response:
                status = getattr(response, "status", 200)
                raw = response.read()
        except error.HTTPError as http_error:
            status = http_error.code
            raw = http_error.read() or b""
        except (error.URLError, TimeoutError, OSError) as network_error:
            logger.warning(f"{method} {url} failed: {network_error}")
            raise TransportError(f"{method} {url} failed: {network_error}") from network_error

        if not raw:
            return status, None
        try:
            return status, json.loads(raw)
        except ValueError:
            if 200 <= status < 300:
                raise TransportError(
                    f"Unreadable response from {url}: {_decode_snippet(raw)}"
                ) from None
            return status, None

    def _check_board_status(self, status: int, body: Any, action: str) -> None:
        if status in AUTH_FAILURE_STATUSES:
            raise AuthError(f"{action} rejected with status {status}")
        if not 200 <= status < 300:
            message = f"{action} failed with status {status}"
            if isinstance(body, dict) and body.get("error"):
                message = f"{message}: {body['error']}"
            raise TransportError(message)

    def get_board(self) -> Board:
        """Fetch the current user's board; the service seeds it on first access."""
        status, body = self._send("GET", "/api/board")
        self._check_board_status(status, body, "Board load")
        if not isinstance(body, dict):
            raise TransportError("Board load returned no document")
        try:
            return Board.from_dict(body)
        except ValueError as exc:
            raise TransportError(f"Board load returned a malformed board: {exc}") from exc

    def save_board(self, board: Board) -> None:
        """Replace the stored board with ``board``."""
        status, body = self._send("POST", "/api/board", board.to_dict())
        self._check_board_status(status, body, "Board save")

    def _account_call(self, path: str, username: str, password: str) -> dict[str, Any]:
        status, body = self._send(
            "POST",
            path,
            {"username": username, "password": password},
            authenticated=False,
        )
        if not 200 <= status < 300:
            message = body.get("error") if isinstance(body, dict) else None
            raise AccountError(message or f"Request failed with status {status}")
        return body if isinstance(body, dict) else {}

    def register(self, username: str, password: str) -> None:
        self._account_call("/api/register", username, password)
        logger.info(f"Registered account {username}")

    def login(self, username: str, password: str) -> Session:
        body = self._account_call("/api/login", username, password)
        try:
            session = Session(token=body["token"], username=body["username"])
        except KeyError as exc:
            raise TransportError(f"Login response is missing {exc}") from exc
        self.token = session.token
        logger.info(f"Logged in as {session.username}")
        return session
