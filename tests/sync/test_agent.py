"""Tests for the debounced autosave agent.

Time is virtual: the scheduler below counts milliseconds and only fires
callbacks when a test advances it.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from quickboard.board import BoardStore
from quickboard.board.model import Board, default_board
from quickboard.sync.agent import SaveStatus, SyncAgent
from quickboard.sync.client import AuthError, Session, TransportError
from quickboard.sync.credentials import CredentialStore

DEBOUNCE_MS = 1000


class FakeTimer:
    def __init__(self, when: int, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.now = 0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target


class FakeClient:
    def __init__(self, scheduler: FakeScheduler, board: Board | None = None):
        self.scheduler = scheduler
        self.token: str | None = None
        self.board = board or default_board()
        self.load_error: Exception | None = None
        self.save_error: Exception | None = None
        self.saves: list[tuple[int, Board]] = []
        self.on_save = None

    def get_board(self) -> Board:
        if self.load_error is not None:
            raise self.load_error
        return self.board

    def save_board(self, board: Board) -> None:
        self.saves.append((self.scheduler.now, board))
        if self.on_save is not None:
            self.on_save()
        if self.save_error is not None:
            raise self.save_error


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def client(scheduler) -> FakeClient:
    return FakeClient(scheduler)


@pytest.fixture
def credentials(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "session.json")


@pytest.fixture
def store() -> BoardStore:
    return BoardStore()


@pytest.fixture
def agent(store, client, credentials, scheduler) -> SyncAgent:
    return SyncAgent(store, client, credentials, debounce=DEBOUNCE_MS, scheduler=scheduler)


SESSION = Session(token="token-1", username="ada")


def test_start_loads_board_and_stores_credential(agent, store, client, credentials):
    assert agent.start(SESSION)

    assert store.board == default_board()
    assert client.token == "token-1"
    assert credentials.load() == SESSION
    assert agent.status is SaveStatus.IDLE
    assert client.saves == []


def test_start_uses_saved_credential(agent, store, credentials):
    credentials.save(SESSION)

    assert agent.start()
    assert agent.session == SESSION
    assert store.board is not None


def test_start_without_credential(agent, store):
    assert not agent.start()
    assert store.board is None


def test_auth_failure_on_load_forces_logout(store, client, credentials, scheduler):
    """Test that an expired credential logs out instead of showing an error."""
    logouts = []
    agent = SyncAgent(
        store,
        client,
        credentials,
        debounce=DEBOUNCE_MS,
        scheduler=scheduler,
        on_logout=lambda: logouts.append(True),
    )
    client.load_error = AuthError("Board load rejected with status 403")

    assert not agent.start(SESSION)

    assert logouts == [True]
    assert store.board is None
    assert credentials.load() is None
    assert client.token is None
    assert agent.session is None
    assert agent.status is SaveStatus.IDLE


def test_transport_failure_on_load_leaves_board_unset(agent, store, client, credentials):
    client.load_error = TransportError("Board load failed with status 500")

    assert not agent.start(SESSION)

    assert agent.status is SaveStatus.ERROR
    assert store.board is None
    assert credentials.load() == SESSION


def test_debounce_coalesces_bursts(agent, store, client, scheduler):
    """Test mutations at 0ms and 500ms produce one save at 1500ms with the later state."""
    agent.start(SESSION)

    store.add_column("First")
    assert agent.status is SaveStatus.SAVING
    scheduler.advance(500)
    store.add_column("Second")

    scheduler.advance(999)
    assert client.saves == []

    scheduler.advance(1)
    assert len(client.saves) == 1
    saved_at, saved = client.saves[0]
    assert saved_at == 1500
    titles = [column.title for column in saved.ordered_columns()]
    assert titles[-2:] == ["First", "Second"]
    assert agent.status is SaveStatus.SAVED

    scheduler.advance(10_000)
    assert len(client.saves) == 1


def test_save_sends_latest_board_at_fire_time(agent, store, client, scheduler):
    agent.start(SESSION)
    store.add_column("A")
    scheduler.advance(DEBOUNCE_MS)

    assert client.saves[-1][1] is store.board


def test_failed_save_is_not_retried(agent, store, client, scheduler):
    """Test that a failed save stays in error until the next change."""
    agent.start(SESSION)
    client.save_error = TransportError("Board save failed with status 500")

    store.add_column("A")
    scheduler.advance(DEBOUNCE_MS)
    assert agent.status is SaveStatus.ERROR

    scheduler.advance(60_000)
    assert len(client.saves) == 1

    client.save_error = None
    store.add_column("B")
    assert agent.status is SaveStatus.SAVING
    scheduler.advance(DEBOUNCE_MS)
    assert agent.status is SaveStatus.SAVED
    assert len(client.saves) == 2


def test_auth_failure_on_save_forces_logout(agent, store, client, scheduler):
    agent.start(SESSION)
    client.save_error = AuthError("Board save rejected with status 401")

    store.add_column("A")
    scheduler.advance(DEBOUNCE_MS)

    assert store.board is None
    assert agent.session is None


def test_change_during_save_schedules_next_save(agent, store, client, scheduler):
    """Test that edits made while a save runs go out with the next save."""
    agent.start(SESSION)
    store.add_column("A")

    def edit_while_saving():
        if len(client.saves) == 1:
            store.add_column("B")

    client.on_save = edit_while_saving
    scheduler.advance(DEBOUNCE_MS)

    assert len(client.saves) == 1
    assert agent.status is SaveStatus.SAVING
    assert agent.has_pending_save

    scheduler.advance(DEBOUNCE_MS)
    assert len(client.saves) == 2
    assert client.saves[1][1].columns[client.saves[1][1].column_order[-1]].title == "B"
    assert agent.status is SaveStatus.SAVED


def test_failed_save_with_change_pending_stays_saving(agent, store, client, scheduler):
    """Test that a failure does not show error while a newer save is scheduled."""
    agent.start(SESSION)
    store.add_column("A")
    client.save_error = TransportError("Board save failed with status 500")

    def edit_while_saving():
        if len(client.saves) == 1:
            store.add_column("B")

    client.on_save = edit_while_saving
    scheduler.advance(DEBOUNCE_MS)

    assert len(client.saves) == 1
    assert agent.has_pending_save
    assert agent.status is SaveStatus.SAVING

    client.save_error = None
    scheduler.advance(DEBOUNCE_MS)
    assert len(client.saves) == 2
    assert agent.status is SaveStatus.SAVED


def test_status_transitions_are_reported(agent, store, scheduler):
    seen = []
    agent.on_status(seen.append)
    agent.start(SESSION)

    store.add_column("A")
    store.add_column("B")
    scheduler.advance(DEBOUNCE_MS)

    assert seen == [SaveStatus.SAVING, SaveStatus.SAVED]


def test_flush_saves_immediately(agent, store, client, scheduler):
    agent.start(SESSION)
    store.add_column("A")

    agent.flush()

    assert len(client.saves) == 1
    assert client.saves[0][0] == 0
    scheduler.advance(DEBOUNCE_MS)
    assert len(client.saves) == 1

    agent.flush()
    assert len(client.saves) == 1


def test_stop_cancels_pending_save_and_unsubscribes(agent, store, client, scheduler):
    agent.start(SESSION)
    store.add_column("A")

    agent.stop()
    scheduler.advance(DEBOUNCE_MS)
    store.add_column("B")
    scheduler.advance(DEBOUNCE_MS)

    assert client.saves == []


def test_no_autosave_after_logout(agent, store, client, scheduler):
    agent.start(SESSION)
    store.add_column("A")

    agent.logout()
    scheduler.advance(DEBOUNCE_MS)

    assert client.saves == []
    assert store.board is None
