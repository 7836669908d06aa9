"""Board state model and its mutations."""

from .interaction import InteractionController
from .model import Board, BoardFormatError, Column, Item, ItemStatus, Tag, default_board
from .store import BoardStore, DragKind, DropLocation, DropResult

__all__ = [
    "Board",
    "BoardFormatError",
    "BoardStore",
    "Column",
    "DragKind",
    "DropLocation",
    "DropResult",
    "InteractionController",
    "Item",
    "ItemStatus",
    "Tag",
    "default_board",
]
