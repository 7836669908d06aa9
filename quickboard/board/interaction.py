"""Interaction modes for the board UI.

Only one interaction can be in progress at a time, so the mode is a single
tagged value instead of independent flags for "adding a list", "editing a
card", and so on.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Union

from loguru import logger

from .model import Item, ItemStatus, Tag
from .store import BoardStore


@dataclass(frozen=True)
class NoInteraction:
    pass


@dataclass(frozen=True)
class AddingColumn:
    draft: str = ""


@dataclass(frozen=True)
class AddingCard:
    column_id: str
    draft: str = ""


@dataclass(frozen=True)
class EditingColumn:
    column_id: str
    draft: str = ""


@dataclass(frozen=True)
class EditingItem:
    item: Item


InteractionMode = Union[NoInteraction, AddingColumn, AddingCard, EditingColumn, EditingItem]

IDLE = NoInteraction()


class InteractionController:
    """Drives board edits through one interaction mode at a time."""

    def __init__(self, store: BoardStore) -> None:
        self.store = store
        self.mode: InteractionMode = IDLE

    def cancel(self) -> None:
        self.mode = IDLE

    # -------------------- columns --------------------
    def begin_add_column(self) -> None:
        self.mode = AddingColumn()

    def commit_add_column(self, title: str) -> None:
        if not isinstance(self.mode, AddingColumn):
            return
        if title.strip():
            self.store.add_column(title)
        self.mode = IDLE

    def begin_edit_column(self, column_id: str) -> None:
        board = self.store.board
        if board is None or column_id not in board.columns:
            return
        self.mode = EditingColumn(column_id, board.columns[column_id].title)

    def commit_edit_column(self, title: str) -> None:
        """Rename the column; a blank title cancels and keeps the old one."""
        mode = self.mode
        if not isinstance(mode, EditingColumn):
            return
        if title.strip():
            self.store.rename_column(mode.column_id, title)
        self.mode = IDLE

    def delete_column(self, column_id: str, confirm: Callable[[str], bool]) -> bool:
        """Delete a column and its cards once ``confirm`` agrees."""
        if not confirm("Delete this list?"):
            return False
        self.store.delete_column(column_id)
        mode = self.mode
        if isinstance(mode, (AddingCard, EditingColumn)) and mode.column_id == column_id:
            self.mode = IDLE
        return True

    # -------------------- cards --------------------
    def begin_add_card(self, column_id: str) -> None:
        board = self.store.board
        if board is None or column_id not in board.columns:
            return
        self.mode = AddingCard(column_id)

    def commit_add_card(self, title: str) -> None:
        """Add a card and stay in add mode for the next one; blank ends the mode."""
        mode = self.mode
        if not isinstance(mode, AddingCard):
            return
        if not title.strip():
            self.mode = IDLE
            return
        self.store.add_item(mode.column_id, title)
        self.mode = AddingCard(mode.column_id)

    def begin_edit_item(self, item_id: str) -> None:
        board = self.store.board
        if board is None:
            return
        column_id = self.store.column_of(item_id)
        if column_id is None:
            return
        column = board.columns[column_id]
        item = column.items[column.index_of(item_id)]
        self.mode = EditingItem(item)

    def update_draft(self, **changes: Any) -> None:
        mode = self.mode
        if not isinstance(mode, EditingItem):
            return
        if "tag" in changes:
            changes["tag"] = Tag(changes["tag"])
        if "status" in changes:
            changes["status"] = ItemStatus(changes["status"])
        self.mode = EditingItem(replace(mode.item, **changes))

    def commit_edit_item(self) -> None:
        mode = self.mode
        if not isinstance(mode, EditingItem):
            return
        self.store.update_item(mode.item)
        self.mode = IDLE

    def delete_edited_item(self) -> None:
        mode = self.mode
        if not isinstance(mode, EditingItem):
            return
        logger.debug(f"Deleting item {mode.item.id}")
        self.store.delete_item(mode.item.id)
        self.mode = IDLE
