"""FastAPI board service: accounts plus one board document per user."""

import sqlite3
import threading
from datetime import timedelta
from typing import Any

import uvicorn
from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from .auth import InvalidCredentialError, TokenClaims, TokenIssuer, hash_password, verify_password
from .config import Settings, get_settings
from .storage import Repository, SQLiteRepository, UserExistsError


class AccountRequest(BaseModel):
    username: str = ""
    password: str = ""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> TokenClaims:
    """Resolve the bearer token: missing -> 401, invalid or expired -> 403."""
    token = None
    if authorization:
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else None
    if not token:
        raise HTTPException(status_code=401, detail="Missing credential")
    issuer: TokenIssuer = request.app.state.tokens
    try:
        return issuer.verify(token)
    except InvalidCredentialError as exc:
        logger.debug(f"Rejected token: {exc}")
        raise HTTPException(status_code=403, detail="Invalid credential") from exc


def create_app(
    settings: Settings | None = None,
    repository: Repository | None = None,
) -> FastAPI:
    """
    Build the board service application.

    Args:
        settings: Service settings; read from the environment when omitted
        repository: Storage backend; a SQLite file from settings when omitted
    """
    settings = settings or get_settings()
    if settings.uses_default_secret:
        logger.warning("QUICKBOARD_SECRET_KEY is not set; using the default signing key")

    app = FastAPI(title="Quickboard", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.repository = repository or SQLiteRepository(settings.database_path)
    app.state.tokens = TokenIssuer(
        settings.secret_key, ttl=timedelta(hours=settings.token_ttl_hours)
    )

    @app.post("/api/register", response_model=None)
    def register(body: AccountRequest) -> dict[str, Any] | JSONResponse:
        if not body.username or not body.password:
            return _error(400, "Missing fields")
        repo: Repository = app.state.repository
        if repo.get_user(body.username) is not None:
            return _error(400, "User already exists")
        try:
            repo.create_user(body.username, hash_password(body.password))
        except UserExistsError:
            return _error(400, "User already exists")
        return {"success": True}

    @app.post("/api/login", response_model=None)
    def login(body: AccountRequest) -> dict[str, Any] | JSONResponse:
        repo: Repository = app.state.repository
        user = repo.get_user(body.username)
        if user is None or not verify_password(body.password, user.password_hash):
            return _error(400, "Invalid credentials")
        token = app.state.tokens.issue(user.id, user.username)
        logger.info(f"User {user.username} logged in")
        return {"token": token, "username": user.username}

    @app.get("/api/board")
    def load_board(claims: TokenClaims = Depends(current_user)) -> dict[str, Any]:
        return app.state.repository.load_or_seed(claims.user_id)

    @app.post("/api/board", response_model=None)
    def save_board(
        document: dict[str, Any] = Body(...),
        claims: TokenClaims = Depends(current_user),
    ) -> dict[str, Any] | JSONResponse:
        try:
            app.state.repository.save(claims.user_id, document)
        except sqlite3.Error:
            logger.exception(f"Failed to save board for user {claims.user_id}")
            return _error(500, "Failed to save")
        logger.debug(f"Saved board for user {claims.user_id}")
        return {"success": True}

    return app


class BoardServer:
    """Runs the board service with uvicorn, blocking or in a background thread."""

    def __init__(self, settings: Settings | None = None, repository: Repository | None = None):
        self.settings = settings or get_settings()
        self.app = create_app(self.settings, repository)
        self._server = uvicorn.Server(
            uvicorn.Config(
                self.app,
                host=self.settings.host,
                port=self.settings.port,
                log_level="warning",
            )
        )
        self._server_thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://{self.settings.host}:{self.settings.port}"

    @property
    def started(self) -> bool:
        return self._server.started

    def serve(self) -> None:
        """Serve in the current thread until interrupted."""
        logger.info(f"Board service listening on {self.url}")
        self._server.run()

    def start_background(self) -> None:
        """Start the server in a background thread."""
        if self._server_thread and self._server_thread.is_alive():
            return
        self._server_thread = threading.Thread(target=self.serve, daemon=True)
        self._server_thread.start()

    def stop(self) -> None:
        self._server.should_exit = True
        if self._server_thread is not None:
            self._server_thread.join(timeout=5)


def start_server(settings: Settings | None = None) -> BoardServer:
    """
    Start the board service in the background.

    Returns:
        The server instance
    """
    server = BoardServer(settings)
    server.start_background()
    return server
