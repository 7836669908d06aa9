"""Observable client-side board store."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from . import mutations
from .model import Board, Item, new_id
from .search import filter_items, is_filter_active

BoardListener = Callable[[Board], None]


class DragKind(str, Enum):
    """What is being dragged."""

    COLUMN = "column"
    CARD = "card"


@dataclass(frozen=True)
class DropLocation:
    container_id: str
    index: int


@dataclass(frozen=True)
class DropResult:
    """
    End of a drag gesture.

    For column drags ``container_id`` is the board itself and indices are
    positions in the column order; for card drags it is a column id.
    ``destination`` is ``None`` when the card was dropped outside any list.
    """

    kind: DragKind
    draggable_id: str
    source: DropLocation
    destination: DropLocation | None = None


class BoardStore:
    """
    Holds the current board and applies mutations to it.

    Every mutation swaps in a new :class:`Board` value; subscribers are
    called with it whenever the value actually changed. An ``item id ->
    column id`` index is kept in step with the board so card lookups do
    not scan every column.
    """

    def __init__(self, board: Board | None = None) -> None:
        self._lock = threading.Lock()
        self._board: Board | None = None
        self._item_index: dict[str, str] = {}
        self._version = 0
        self._search_query = ""
        self._subscribers: list[BoardListener] = []
        self._subscriber_lock = threading.Lock()
        if board is not None:
            self.load(board)

    # -------------------- state --------------------
    @property
    def board(self) -> Board | None:
        with self._lock:
            return self._board

    def snapshot(self) -> Board | None:
        """The latest board; safe to call from any thread."""
        return self.board

    @property
    def version(self) -> int:
        """Incremented on every change to the board."""
        with self._lock:
            return self._version

    def load(self, board: Board) -> None:
        """Install a board fetched from the server. Does not notify subscribers."""
        with self._lock:
            self._board = board
            self._item_index = board.locate_items()
            self._version += 1
        logger.debug(
            f"Loaded board with {len(board.column_order)} columns, "
            f"{board.total_items()} items"
        )

    def clear(self) -> None:
        with self._lock:
            self._board = None
            self._item_index = {}
            self._version += 1
            self._search_query = ""

    def column_of(self, item_id: str) -> str | None:
        with self._lock:
            return self._item_index.get(item_id)

    # -------------------- search --------------------
    @property
    def search_query(self) -> str:
        return self._search_query

    def set_search_query(self, query: str) -> None:
        self._search_query = query or ""

    @property
    def reordering_enabled(self) -> bool:
        """Filtered positions do not match real positions, so drags are off."""
        return not is_filter_active(self._search_query)

    def visible_items(self, column_id: str) -> list[Item]:
        board = self.board
        if board is None or column_id not in board.columns:
            return []
        return filter_items(board.columns[column_id].items, self._search_query)

    # -------------------- mutations --------------------
    def _commit(
        self,
        mutate: Callable[[Board, dict[str, str]], Board],
        reindex: Callable[[Board, Board, dict[str, str]], None] | None = None,
    ) -> Board | None:
        with self._lock:
            current = self._board
            if current is None:
                logger.debug("No board loaded; mutation ignored")
                return None
            updated = mutate(current, self._item_index)
            if updated is current:
                return current
            if reindex is not None:
                reindex(current, updated, self._item_index)
            self._board = updated
            self._version += 1
        self._notify_subscribers(updated)
        return updated

    def reorder_columns(self, from_index: int, to_index: int) -> Board | None:
        if not self.reordering_enabled:
            logger.debug("Column reorder ignored while a search filter is active")
            return self.board
        return self._commit(
            lambda board, _: mutations.reorder_columns(board, from_index, to_index)
        )

    def move_item(
        self,
        source_column_id: str,
        source_index: int,
        dest_column_id: str,
        dest_index: int,
    ) -> Board | None:
        if not self.reordering_enabled:
            logger.debug("Card move ignored while a search filter is active")
            return self.board

        def reindex(before: Board, after: Board, index: dict[str, str]) -> None:
            moved = before.columns[source_column_id].items[source_index]
            index[moved.id] = dest_column_id

        return self._commit(
            lambda board, _: mutations.move_item(
                board, source_column_id, source_index, dest_column_id, dest_index
            ),
            reindex,
        )

    def add_column(self, title: str) -> Board | None:
        return self._commit(lambda board, _: mutations.add_column(board, title))

    def rename_column(self, column_id: str, new_title: str) -> Board | None:
        return self._commit(
            lambda board, _: mutations.rename_column(board, column_id, new_title)
        )

    def delete_column(self, column_id: str) -> Board | None:
        def reindex(before: Board, after: Board, index: dict[str, str]) -> None:
            for item in before.columns[column_id].items:
                index.pop(item.id, None)

        return self._commit(
            lambda board, _: mutations.delete_column(board, column_id), reindex
        )

    def add_item(self, column_id: str, title: str) -> Board | None:
        item_id = new_id()

        def reindex(before: Board, after: Board, index: dict[str, str]) -> None:
            index[item_id] = column_id

        return self._commit(
            lambda board, _: mutations.add_item(board, column_id, title, item_id=item_id),
            reindex,
        )

    def update_item(self, updated: Item) -> Board | None:
        return self._commit(
            lambda board, index: mutations.update_item(
                board, updated, index.get(updated.id)
            )
        )

    def delete_item(self, item_id: str) -> Board | None:
        def reindex(before: Board, after: Board, index: dict[str, str]) -> None:
            index.pop(item_id, None)

        return self._commit(
            lambda board, index: mutations.delete_item(
                board, item_id, index.get(item_id)
            ),
            reindex,
        )

    def toggle_item_status(self, item_id: str) -> Board | None:
        return self._commit(
            lambda board, index: mutations.toggle_item_status(
                board, item_id, index.get(item_id)
            )
        )

    def apply_drop(self, drop: DropResult) -> Board | None:
        """Apply a finished drag gesture."""
        destination = drop.destination
        if destination is None or not self.reordering_enabled:
            return self.board
        source = drop.source
        if (
            destination.container_id == source.container_id
            and destination.index == source.index
        ):
            return self.board
        if drop.kind is DragKind.COLUMN:
            return self.reorder_columns(source.index, destination.index)
        return self.move_item(
            source.container_id, source.index, destination.container_id, destination.index
        )

    # -------------------- subscribers --------------------
    def subscribe(self, callback: BoardListener) -> None:
        """
        Subscribe to board changes.

        Args:
            callback: Called with the new board after each change
        """
        with self._subscriber_lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: BoardListener) -> None:
        with self._subscriber_lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify_subscribers(self, board: Board) -> None:
        with self._subscriber_lock:
            subscribers = self._subscribers.copy()

        for callback in subscribers:
            try:
                callback(board)
            except Exception:
                logger.exception("Board subscriber raised")
