"""Tests for the board document model."""

import pytest

from quickboard.board.model import (
    Board,
    BoardFormatError,
    Column,
    Item,
    ItemStatus,
    Tag,
    check_invariants,
    default_board,
)


def _document():
    return {
        "columns": {
            "a": {
                "id": "a",
                "title": "To Do",
                "items": [
                    {
                        "id": "i1",
                        "title": "Call the bank",
                        "content": "before noon",
                        "tag": "Urgent",
                        "status": "in-progress",
                        "createdAt": "10/19/2026",
                    }
                ],
            },
            "b": {"id": "b", "title": "Done", "items": []},
        },
        "columnOrder": ["b", "a"],
    }


def test_decode_and_encode_wire_shape():
    """Test that a board document survives decoding and encoding verbatim."""
    document = _document()
    board = Board.from_dict(document)

    assert board.column_order == ("b", "a")
    item = board.columns["a"].items[0]
    assert item.tag is Tag.URGENT
    assert item.status is ItemStatus.IN_PROGRESS
    assert item.created_at == "10/19/2026"
    assert board.to_dict() == document


def test_missing_status_defaults_to_pending():
    """Test that records written before statuses existed decode as pending."""
    document = _document()
    del document["columns"]["a"]["items"][0]["status"]

    board = Board.from_dict(document)

    assert board.columns["a"].items[0].status is ItemStatus.PENDING


def test_unknown_tag_is_rejected():
    document = _document()
    document["columns"]["a"]["items"][0]["tag"] = "Someday"

    with pytest.raises(ValueError):
        Board.from_dict(document)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda doc: doc["columnOrder"].append("a"),
        lambda doc: doc["columnOrder"].remove("b"),
        lambda doc: doc["columnOrder"].append("ghost"),
        lambda doc: doc["columns"]["b"].update(id="not-b"),
        lambda doc: doc["columns"]["b"]["items"].append(dict(doc["columns"]["a"]["items"][0])),
        lambda doc: doc.pop("columnOrder"),
    ],
)
def test_inconsistent_documents_raise(mutate):
    """Test that documents breaking the column/order bijection are refused."""
    document = _document()
    mutate(document)

    with pytest.raises(BoardFormatError):
        Board.from_dict(document)


def test_default_board_seed():
    board = default_board()

    assert board.column_order == ("col-1", "col-2", "col-3")
    assert [column.title for column in board.ordered_columns()] == ["To Do", "Doing", "Done"]
    assert board.total_items() == 0
    check_invariants(board)


def test_find_and_locate_items():
    first = Item(id="x", title="x")
    second = Item(id="y", title="y")
    board = Board(
        columns={"a": Column("a", "A", (first,)), "b": Column("b", "B", (second,))},
        column_order=("a", "b"),
    )

    assert board.find_item("y") == ("b", 0)
    assert board.find_item("missing") is None
    assert board.locate_items() == {"x": "a", "y": "b"}


def test_new_items_get_defaults():
    item = Item(id="x", title="Plan")

    assert item.content == ""
    assert item.tag is Tag.GENERAL
    assert item.status is ItemStatus.PENDING
    assert item.created_at
