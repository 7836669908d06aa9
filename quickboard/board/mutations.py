"""Pure board mutations.

Each function takes a :class:`Board` and returns a board. A rejected or
no-op call returns the input object itself, so callers detect change with
``result is not board``. Accepted calls build fresh containers and never
touch the input.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from .model import Board, Column, Item, ItemStatus, Tag, new_id, today


def _is_blank(title: str | None) -> bool:
    return title is None or not title.strip()


def _replace_columns(board: Board, *changed: Column) -> Board:
    columns = dict(board.columns)
    for column in changed:
        columns[column.id] = column
    return Board(columns=columns, column_order=tuple(board.column_order))


def _resolve_column(board: Board, item_id: str, column_id: str | None) -> str | None:
    """Find the column holding ``item_id``, trusting ``column_id`` if it checks out."""
    if column_id is not None:
        column = board.columns.get(column_id)
        if column is not None and column.index_of(item_id) is not None:
            return column_id
    found = board.find_item(item_id)
    return found[0] if found else None


def reorder_columns(board: Board, from_index: int, to_index: int) -> Board:
    """Move the column at ``from_index`` in the display order to ``to_index``."""
    size = len(board.column_order)
    if not (0 <= from_index < size and 0 <= to_index < size):
        logger.debug(f"Rejected column reorder {from_index} -> {to_index} (size {size})")
        return board
    if from_index == to_index:
        return board
    order = list(board.column_order)
    column_id = order.pop(from_index)
    order.insert(to_index, column_id)
    return Board(columns=dict(board.columns), column_order=tuple(order))


def move_item(
    board: Board,
    source_column_id: str,
    source_index: int,
    dest_column_id: str,
    dest_index: int,
) -> Board:
    """
    Move a card within a column or across columns.

    Within one column this is a list splice: remove at ``source_index``,
    then insert at ``dest_index`` counted against the shortened list.
    Across columns the card is removed from the source and inserted,
    unmodified, into the destination.
    """
    source = board.columns.get(source_column_id)
    dest = board.columns.get(dest_column_id)
    if source is None or dest is None:
        logger.debug(f"Rejected move between unknown columns {source_column_id} -> {dest_column_id}")
        return board
    if not 0 <= source_index < len(source.items):
        logger.debug(f"Rejected move from index {source_index} of {source_column_id}")
        return board

    if source_column_id == dest_column_id:
        if source_index == dest_index:
            return board
        items = list(source.items)
        moved = items.pop(source_index)
        if not 0 <= dest_index <= len(items):
            logger.debug(f"Rejected move to index {dest_index} of {dest_column_id}")
            return board
        items.insert(dest_index, moved)
        return _replace_columns(board, replace(source, items=tuple(items)))

    if not 0 <= dest_index <= len(dest.items):
        logger.debug(f"Rejected move to index {dest_index} of {dest_column_id}")
        return board
    source_items = list(source.items)
    moved = source_items.pop(source_index)
    dest_items = list(dest.items)
    dest_items.insert(dest_index, moved)
    return _replace_columns(
        board,
        replace(source, items=tuple(source_items)),
        replace(dest, items=tuple(dest_items)),
    )


def add_column(board: Board, title: str, column_id: str | None = None) -> Board:
    """Append an empty column to the end of the display order."""
    if _is_blank(title):
        logger.debug("Rejected blank column title")
        return board
    column = Column(id=column_id or new_id(), title=title)
    columns = dict(board.columns)
    columns[column.id] = column
    return Board(columns=columns, column_order=(*board.column_order, column.id))


def rename_column(board: Board, column_id: str, new_title: str) -> Board:
    column = board.columns.get(column_id)
    if column is None or _is_blank(new_title):
        return board
    return _replace_columns(board, replace(column, title=new_title))


def delete_column(board: Board, column_id: str) -> Board:
    """Drop a column together with every card in it."""
    if column_id not in board.columns:
        return board
    columns = {key: value for key, value in board.columns.items() if key != column_id}
    order = tuple(key for key in board.column_order if key != column_id)
    return Board(columns=columns, column_order=order)


def add_item(
    board: Board,
    column_id: str,
    title: str,
    item_id: str | None = None,
    created_at: str | None = None,
) -> Board:
    """Append a new pending ``General`` card to a column."""
    column = board.columns.get(column_id)
    if column is None or _is_blank(title):
        return board
    item = Item(
        id=item_id or new_id(),
        title=title,
        content="",
        tag=Tag.GENERAL,
        status=ItemStatus.PENDING,
        created_at=created_at or today(),
    )
    return _replace_columns(board, replace(column, items=(*column.items, item)))


def update_item(board: Board, updated: Item, column_id: str | None = None) -> Board:
    """Replace the card sharing ``updated.id`` in place, keeping its position."""
    owner = _resolve_column(board, updated.id, column_id)
    if owner is None:
        logger.debug(f"Item {updated.id} no longer exists; update dropped")
        return board
    column = board.columns[owner]
    items = tuple(updated if item.id == updated.id else item for item in column.items)
    return _replace_columns(board, replace(column, items=items))


def delete_item(board: Board, item_id: str, column_id: str | None = None) -> Board:
    owner = _resolve_column(board, item_id, column_id)
    if owner is None:
        return board
    column = board.columns[owner]
    items = tuple(item for item in column.items if item.id != item_id)
    return _replace_columns(board, replace(column, items=items))


def toggled_status(status: ItemStatus) -> ItemStatus:
    """Two-state toggle over the three-state status.

    Only ``completed`` goes back to ``pending``; ``pending`` and
    ``in-progress`` both become ``completed``.
    """
    if status is ItemStatus.COMPLETED:
        return ItemStatus.PENDING
    return ItemStatus.COMPLETED


def toggle_item_status(board: Board, item_id: str, column_id: str | None = None) -> Board:
    owner = _resolve_column(board, item_id, column_id)
    if owner is None:
        return board
    column = board.columns[owner]
    index = column.index_of(item_id)
    item = column.items[index]
    return update_item(board, replace(item, status=toggled_status(item.status)), owner)
