"""Load-once, debounced autosave synchronisation of a board store."""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import Final, Protocol

from loguru import logger

from ..board.model import Board
from ..board.store import BoardStore
from .client import AuthError, BoardClient, Session, SyncError, TransportError
from .credentials import CredentialStore

DEBOUNCE_SECONDS: Final[float] = 1.0


class SaveStatus(str, Enum):
    """Save indicator shown next to the board."""

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadingScheduler:
    """Runs callbacks on :class:`threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class SyncAgent:
    """
    Keeps a :class:`BoardStore` in step with the board service.

    The board is loaded once when the session starts. After that every
    change observed on the store (re)starts a debounce timer; when it
    elapses the whole current board is posted. A newer change before the
    timer fires replaces the pending save instead of queueing another one,
    and saves never overlap. Failed saves are not retried: the next change
    triggers the next attempt.
    """

    def __init__(
        self,
        store: BoardStore,
        client: BoardClient,
        credentials: CredentialStore | None = None,
        debounce: float = DEBOUNCE_SECONDS,
        scheduler: Scheduler | None = None,
        on_logout: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.credentials = credentials
        self.debounce = debounce
        self.scheduler: Scheduler = scheduler or ThreadingScheduler()
        self.on_logout = on_logout
        self.session: Session | None = None

        self._status = SaveStatus.IDLE
        self._status_listeners: list[Callable[[SaveStatus], None]] = []
        self._pending: Cancellable | None = None
        self._generation = 0
        self._pending_lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._subscribed = False

    # -------------------- status --------------------
    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def has_pending_save(self) -> bool:
        with self._pending_lock:
            return self._pending is not None

    def on_status(self, callback: Callable[[SaveStatus], None]) -> None:
        self._status_listeners.append(callback)

    def _set_status(self, status: SaveStatus) -> None:
        with self._pending_lock:
            changed = self._swap_status(status)
        if changed:
            self._announce(status)

    def _swap_status(self, status: SaveStatus) -> bool:
        # Caller holds _pending_lock.
        if status is self._status:
            return False
        self._status = status
        return True

    def _settle(self, outcome: SaveStatus) -> None:
        """Report a finished save; a scheduled save keeps the indicator at saving."""
        with self._pending_lock:
            status = SaveStatus.SAVING if self._pending is not None else outcome
            changed = self._swap_status(status)
        if changed:
            self._announce(status)

    def _announce(self, status: SaveStatus) -> None:
        for callback in list(self._status_listeners):
            try:
                callback(status)
            except Exception:
                logger.exception("Save status listener raised")

    # -------------------- session --------------------
    def start(self, session: Session | None = None) -> bool:
        """
        Begin a session and load the user's board.

        Args:
            session: Credential to use; falls back to the credential store

        Returns:
            True when the board was loaded
        """
        if session is None and self.credentials is not None:
            session = self.credentials.load()
        if session is None:
            logger.info("No saved credential; login required")
            return False

        self.session = session
        self.client.token = session.token
        if self.credentials is not None:
            self.credentials.save(session)
        if not self._subscribed:
            self.store.subscribe(self._on_board_changed)
            self._subscribed = True

        logger.info(f"Loading board for {session.username}")
        try:
            board = self.client.get_board()
        except AuthError as exc:
            logger.warning(f"Credential rejected while loading board: {exc}")
            self.logout()
            return False
        except TransportError as exc:
            logger.error(f"Could not load board: {exc}")
            self._set_status(SaveStatus.ERROR)
            return False

        self.store.load(board)
        self._set_status(SaveStatus.IDLE)
        return True

    def logout(self) -> None:
        """Forget the credential and the board."""
        self._cancel_pending()
        if self.credentials is not None:
            self.credentials.clear()
        self.session = None
        self.client.token = None
        self.store.clear()
        self._set_status(SaveStatus.IDLE)
        logger.info("Logged out")
        if self.on_logout is not None:
            self.on_logout()

    def stop(self) -> None:
        """Drop any scheduled save and stop observing the store."""
        self._cancel_pending()
        if self._subscribed:
            self.store.unsubscribe(self._on_board_changed)
            self._subscribed = False

    # -------------------- autosave --------------------
    def _on_board_changed(self, board: Board) -> None:
        if self.session is None:
            return
        with self._pending_lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = self.scheduler.call_later(
                self.debounce, lambda: self._fire(generation)
            )
            changed = self._swap_status(SaveStatus.SAVING)
        logger.debug(f"Save scheduled in {self.debounce}s")
        if changed:
            self._announce(SaveStatus.SAVING)

    def _cancel_pending(self) -> bool:
        with self._pending_lock:
            if self._pending is None:
                return False
            self._pending.cancel()
            self._pending = None
            self._generation += 1
            return True

    def _fire(self, generation: int) -> None:
        with self._pending_lock:
            # A timer can fire after being superseded; only the newest one saves.
            if generation != self._generation:
                return
            self._pending = None
        self._save()

    def flush(self) -> None:
        """Run a scheduled save now instead of waiting for the timer."""
        if self._cancel_pending():
            self._save()

    def _save(self) -> None:
        with self._save_lock:
            board = self.store.snapshot()
            if board is None or self.session is None:
                return
            try:
                self.client.save_board(board)
            except AuthError as exc:
                logger.warning(f"Credential rejected while saving: {exc}")
                self.logout()
                return
            except SyncError as exc:
                logger.error(f"Board save failed: {exc}")
                self._settle(SaveStatus.ERROR)
                return

            logger.success("Board saved")
            self._settle(SaveStatus.SAVED)
