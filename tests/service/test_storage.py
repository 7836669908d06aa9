"""Tests for the SQLite account and board storage."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from quickboard.board.model import default_board
from quickboard.service.storage import SQLiteRepository, UserExistsError


@pytest.fixture
def repo(tmp_path: Path) -> SQLiteRepository:
    return SQLiteRepository(tmp_path / "db" / "quickboard.db")


def test_first_load_seeds_default_board(repo):
    """Test that a new user gets the seed board, and only once."""
    first = repo.load_or_seed("u1")

    assert first == default_board().to_dict()
    assert first["columnOrder"] == ["col-1", "col-2", "col-3"]
    assert [first["columns"][c]["title"] for c in first["columnOrder"]] == ["To Do", "Doing", "Done"]

    assert repo.load_or_seed("u1") == first


def test_seed_is_not_reapplied_after_save(repo):
    repo.load_or_seed("u1")
    document = {"columns": {}, "columnOrder": []}
    repo.save("u1", document)

    assert repo.load_or_seed("u1") == document


def test_concurrent_first_loads_agree(repo):
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: repo.load_or_seed("u1"), range(16)))

    assert all(result == results[0] for result in results)


def test_save_overwrites_last_write_wins(repo):
    repo.save("u1", {"columns": {}, "columnOrder": [], "rev": 1})
    repo.save("u1", {"columns": {}, "columnOrder": [], "rev": 2})

    assert repo.load_or_seed("u1")["rev"] == 2


def test_boards_are_per_user(repo):
    repo.save("u1", {"columns": {}, "columnOrder": []})

    assert repo.load_or_seed("u2") == default_board().to_dict()


def test_users(repo):
    created = repo.create_user("ada", "salt$hash")

    fetched = repo.get_user("ada")
    assert fetched == created
    assert repo.get_user("bob") is None

    with pytest.raises(UserExistsError):
        repo.create_user("ada", "other")

    other = repo.create_user("bob", "salt$hash")
    assert other.id != created.id
