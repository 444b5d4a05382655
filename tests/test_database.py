from datetime import datetime

import pytest

from seabattle_server.client import Client
from seabattle_server.database import (
    EMPTY_SQUARE,
    FIELDS_FORMAT,
    FIELDS_TABLE,
    FILLED_SQUARE,
    GAMES_ENDINGS_FORMAT,
    GAMES_ENDINGS_TABLE,
    Database,
    format_field,
)
from seabattle_server.game import Game


@pytest.fixture
def db():
    with Database(":memory:") as database:
        database.create_table(FIELDS_TABLE, FIELDS_FORMAT)
        database.create_table(GAMES_ENDINGS_TABLE, GAMES_ENDINGS_FORMAT)
        yield database


def _client(client_id, login, layout):
    client = Client(client_id, lambda data: None)
    client.login = login
    client.init_field(layout)
    return client


def test_format_field_maps_digits_to_squares():
    assert format_field("01") == EMPTY_SQUARE + FILLED_SQUARE
    assert format_field("0x1") == EMPTY_SQUARE + "0" + FILLED_SQUARE


def test_format_field_keeps_length():
    text = "1111011100" * 10
    assert len(format_field(text)) == len(text)


def test_placements_round_trip(db):
    db.add_placement("a" * 100)
    db.add_placement("b" * 100)
    assert db.table_len(FIELDS_TABLE) == 2
    assert db.rows(FIELDS_TABLE) == [("a" * 100,), ("b" * 100,)]


def test_random_field_empty_table(db):
    assert db.random_field() == ""


def test_random_field_picks_stored(db):
    stored = {"1" * 100, "0" * 100, "10" * 50}
    for field in stored:
        db.add_placement(field)
    for _ in range(20):
        assert db.random_field() in stored


def test_create_table_twice_keeps_rows(db):
    db.add_placement("1" * 100)
    db.create_table(FIELDS_TABLE, FIELDS_FORMAT)
    assert db.table_len(FIELDS_TABLE) == 1


def test_clear_empties_all_tables(db):
    db.add_placement("1" * 100)
    db.run_query(
        "INSERT INTO GamesEndings VALUES ('a', 'b', 'c', 'd', 'e', 'f', 'g')"
    )
    db.clear()
    assert db.table_len(FIELDS_TABLE) == 0
    assert db.table_len(GAMES_ENDINGS_TABLE) == 0


def test_run_query_returns_rows(db):
    db.add_placement("xyz")
    assert db.run_query("SELECT field_text FROM Fields") == [("xyz",)]


def test_add_game_ending_and_read_back(db):
    layout = "1" + "0" * 99
    started = _client(1, "alice", layout)
    accepted = _client(2, "bob", "0" * 100)
    game = Game(7, started, accepted)
    game.start_time = datetime(2024, 1, 2, 3, 4, 5)
    game.end_time = datetime(2024, 1, 2, 3, 14, 5)
    game.winner_login = "alice"
    db.add_game_ending(game)

    (row,) = db.rows(GAMES_ENDINGS_TABLE)
    assert row[0] == "alice"
    assert row[1] == "bob"
    assert row[2] == format_field(layout)
    assert row[3] == EMPTY_SQUARE * 100
    assert row[4] == "2024-01-0203:04:05"
    assert row[6] == "alice"

    (ending,) = db.games_endings()
    assert ending == ":".join(row)


def test_invalid_table_name(db):
    with pytest.raises(ValueError):
        db.table_len("Fields; DROP TABLE Fields")


def test_closed_database_raises():
    database = Database(":memory:")
    with pytest.raises(RuntimeError):
        database.table_len(FIELDS_TABLE)


def test_context_manager_closes(tmp_path):
    path = tmp_path / "data.db"
    with Database(path) as database:
        database.create_table(FIELDS_TABLE, FIELDS_FORMAT)
        database.add_placement("1" * 100)
        assert database.is_open
    assert not database.is_open
    with Database(path) as reopened:
        assert reopened.table_len(FIELDS_TABLE) == 1