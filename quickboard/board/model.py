"""Board document model: columns of ordered cards.

The wire shape is the JSON document exchanged with the board service::

    {"columns": {id: {"id", "title", "items": [...]}}, "columnOrder": [id, ...]}

Items use camelCase ``createdAt`` on the wire; everything else keeps its
Python name.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class BoardFormatError(ValueError):
    """Raised when a board document breaks the board invariants."""


class Tag(str, Enum):
    """Closed set of card tags."""

    MEETING = "Meeting"
    URGENT = "Urgent"
    IDEA = "Idea"
    GENERAL = "General"


class ItemStatus(str, Enum):
    """Status of a card."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


def new_id() -> str:
    """Return a fresh opaque identifier for a column or card."""
    return str(uuid.uuid4())


def today() -> str:
    """Creation date shown on new cards."""
    return date.today().isoformat()


@dataclass(frozen=True)
class Item:
    """A single card."""

    id: str
    title: str
    content: str = ""
    tag: Tag = Tag.GENERAL
    status: ItemStatus = ItemStatus.PENDING
    created_at: str = field(default_factory=today)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tag": self.tag.value,
            "status": self.status.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Item:
        # Records written before statuses existed carry no "status" key.
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            content=data.get("content") or "",
            tag=Tag(data.get("tag", Tag.GENERAL.value)),
            status=ItemStatus(data.get("status") or ItemStatus.PENDING.value),
            created_at=data.get("createdAt", ""),
        )


@dataclass(frozen=True)
class Column:
    """An ordered, named list of cards."""

    id: str
    title: str
    items: tuple[Item, ...] = ()

    def index_of(self, item_id: str) -> int | None:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Column:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            items=tuple(Item.from_dict(raw) for raw in data.get("items") or ()),
        )


@dataclass(frozen=True)
class Board:
    """
    A user's whole board.

    ``columns`` and ``column_order`` always hold the same set of ids, with
    no duplicates in ``column_order``. A card lives in exactly one column.
    """

    columns: Mapping[str, Column] = field(default_factory=dict)
    column_order: tuple[str, ...] = ()

    def ordered_columns(self) -> Iterator[Column]:
        """Yield columns in display order."""
        for column_id in self.column_order:
            yield self.columns[column_id]

    def total_items(self) -> int:
        return sum(len(column.items) for column in self.columns.values())

    def find_item(self, item_id: str) -> tuple[str, int] | None:
        """Return ``(column_id, index)`` of an item by scanning every column."""
        for column in self.ordered_columns():
            index = column.index_of(item_id)
            if index is not None:
                return column.id, index
        return None

    def locate_items(self) -> dict[str, str]:
        """Build the item id -> column id index."""
        return {
            item.id: column.id
            for column in self.columns.values()
            for item in column.items
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": {
                column_id: column.to_dict()
                for column_id, column in self.columns.items()
            },
            "columnOrder": list(self.column_order),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Board:
        """
        Decode a board document and check its invariants.

        Raises:
            BoardFormatError: If the document is not board-shaped, the
                column order and column map disagree, or a card id appears
                twice.
            ValueError: If a card carries an unknown tag or status.
        """
        try:
            raw_columns = data["columns"]
            raw_order = data["columnOrder"]
        except (KeyError, TypeError) as exc:
            raise BoardFormatError(f"Board document is missing {exc}") from exc
        if not isinstance(raw_columns, Mapping) or not isinstance(raw_order, list):
            raise BoardFormatError("Board document has the wrong shape")

        try:
            columns = {
                column_id: Column.from_dict(raw)
                for column_id, raw in raw_columns.items()
            }
        except (KeyError, TypeError, AttributeError) as exc:
            raise BoardFormatError(f"Malformed column: {exc}") from exc

        board = cls(columns=columns, column_order=tuple(raw_order))
        check_invariants(board)
        return board


def check_invariants(board: Board) -> None:
    """Raise :class:`BoardFormatError` if ``board`` is inconsistent."""
    order = board.column_order
    if len(set(order)) != len(order):
        raise BoardFormatError("columnOrder contains duplicate ids")
    if set(order) != set(board.columns):
        raise BoardFormatError("columnOrder and columns disagree")
    for column_id, column in board.columns.items():
        if column.id != column_id:
            raise BoardFormatError(
                f"Column keyed {column_id!r} carries id {column.id!r}"
            )
    seen: set[str] = set()
    for column in board.columns.values():
        for item in column.items:
            if item.id in seen:
                raise BoardFormatError(f"Item {item.id!r} appears more than once")
            seen.add(item.id)


SEED_COLUMNS: tuple[tuple[str, str], ...] = (
    ("col-1", "To Do"),
    ("col-2", "Doing"),
    ("col-3", "Done"),
)


def default_board(columns: Iterable[tuple[str, str]] = SEED_COLUMNS) -> Board:
    """Seed board created the first time a user's board is requested."""
    seeded = [Column(id=column_id, title=title) for column_id, title in columns]
    return Board(
        columns={column.id: column for column in seeded},
        column_order=tuple(column.id for column in seeded),
    )
