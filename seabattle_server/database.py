"""SQLite storage for ship placements and finished games."""

from __future__ import annotations

import logging
import random
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from seabattle_server.game import Game

FIELDS_TABLE = "Fields"
FIELDS_FORMAT = "field_text TEXT"
GAMES_ENDINGS_TABLE = "GamesEndings"
GAMES_ENDINGS_FORMAT = (
    "player1 TEXT, player2 TEXT, field_text1 TEXT, field_text2 TEXT, "
    "start_date DATE, end_date DATE, winner TEXT"
)

EMPTY_SQUARE = "\u25a1"
FILLED_SQUARE = "\u25a0"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_SQUARES = {"0": EMPTY_SQUARE, "1": FILLED_SQUARE}

log = logging.getLogger(__name__)


def format_field(text: str) -> str:
    """Show a 0/1 ship layout as empty and filled squares; other characters become '0'."""
    return "".join(_SQUARES.get(ch, "0") for ch in text)


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name):
        raise ValueError(f"invalid table name: {name!r}")
    return name


def _stamp(moment: Optional[datetime]) -> str:
    if moment is None:
        return ""
    return moment.strftime("%Y-%m-%d") + moment.strftime("%H:%M:%S")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class Database:
    """A connection to the game database."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError(f"database {self.path!r} is not open")
        return self._conn

    def open(self) -> "Database":
        if self._conn is None:
            self._conn = sqlite3.connect(self.path)
        return self

    def close(self) -> None:
        if self._conn is None:
            log.debug("database %s was not open", self.path)
            return
        self._conn.close()
        self._conn = None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def run_query(self, query: str) -> list[tuple]:
        """Run one SQL statement, commit, and return any rows it produced."""
        conn = self._connection
        rows = conn.execute(query).fetchall()
        conn.commit()
        return rows

    def create_table(self, name: str, table_format: str) -> None:
        """Create a table unless it already exists."""
        conn = self._connection
        conn.execute(f"CREATE TABLE IF NOT EXISTS {_check_name(name)} ({table_format})")
        conn.commit()
        log.debug("table %s created or already present", name)

    def rows(self, name: str) -> list[tuple]:
        return self._connection.execute(f"SELECT * FROM {_check_name(name)}").fetchall()

    def table_len(self, name: str) -> int:
        (count,) = self._connection.execute(
            f"SELECT COUNT(*) FROM {_check_name(name)}"
        ).fetchone()
        return int(count)

    def clear(self) -> None:
        """Delete every row of every table."""
        conn = self._connection
        names = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            )
        ]
        for name in names:
            conn.execute(f'DELETE FROM "{name}"')
            log.debug("rows deleted from %s", name)
        conn.commit()

    def random_field(self) -> str:
        """Return a random stored placement, or an empty string when there is none."""
        count = self.table_len(FIELDS_TABLE)
        if count <= 0:
            log.debug("no placements stored")
            return ""
        offset = random.randrange(count)
        row = self._connection.execute(
            f"SELECT field_text FROM {FIELDS_TABLE} LIMIT 1 OFFSET ?", (offset,)
        ).fetchone()
        if row is None:
            return ""
        return _text(row[0])

    def games_endings(self) -> list[str]:
        """Return every finished game as seven colon-joined fields."""
        rows = self._connection.execute(
            "SELECT player1, player2, field_text1, field_text2, start_date, end_date, winner "
            f"FROM {GAMES_ENDINGS_TABLE}"
        ).fetchall()
        return [":".join(_text(value) for value in row) for row in rows]

    def add_placement(self, field: str) -> None:
        conn = self._connection
        conn.execute(f"INSERT INTO {FIELDS_TABLE} (field_text) VALUES (?)", (field,))
        conn.commit()

    def add_game_ending(self, game: "Game") -> None:
        """Store the result of a finished game."""
        conn = self._connection
        conn.execute(
            f"INSERT INTO {GAMES_ENDINGS_TABLE} "
            "(player1, player2, field_text1, field_text2, start_date, end_date, winner) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                game.started.login,
                game.accepted.login,
                format_field(game.started.field_str()),
                format_field(game.accepted.field_str()),
                _stamp(game.start_time),
                _stamp(game.end_time),
                game.winner_login,
            ),
        )
        conn.commit()
        log.debug("game %s result stored", game.game_id)