"""A player connected to the server, with their login, status and board."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import IntEnum
from typing import Optional

from seabattle_server.field import CellDraw, CellState, Field


class ClientStatus(IntEnum):
    """Connection status of a client."""

    DISCONNECTED = 0
    CONNECTED = 1
    AUTHORIZED = 2


class Readiness(IntEnum):
    """Whether a client is ready to play."""

    NREADY = 0
    READY = 1
    PLAYING = 2


class Client:
    """A connected player.

    ``send`` is called with the raw bytes to deliver to the player.
    """

    def __init__(self, client_id: int, send: Callable[[bytes], object]):
        self.client_id = client_id
        self.send = send
        self.status = ClientStatus.CONNECTED
        self.readiness = Readiness.NREADY
        self.login = ""
        self.enemy: Optional[Client] = None
        self.field: Optional[Field] = None

    def __repr__(self) -> str:
        return (
            f"Client(id={self.client_id}, login={self.login!r}, "
            f"status={self.status.name}, readiness={self.readiness.name})"
        )

    @property
    def _board(self) -> Field:
        if self.field is None:
            raise RuntimeError(f"client {self.client_id} has no field")
        return self.field

    def init_field(
        self, field: Optional[str] = None, field_state: Optional[str] = None
    ) -> None:
        """Create the client's board from layout and state strings and show its ships."""
        board = Field(field, field_state)
        board.init_draw()
        self.field = board

    def field_str(self) -> str:
        """Return the ship layout as a digit string, or an empty string without a board."""
        if self.field is None:
            return ""
        return self.field.field_str()

    def is_authorized(self) -> bool:
        return self.status == ClientStatus.AUTHORIZED

    def is_cell_empty(self, x: int, y: int) -> bool:
        return self._board.is_cell_empty(x, y)

    def is_killed(self, x: int, y: int) -> bool:
        return self._board.is_killed(x, y)

    def set_cell_state(self, x: int, y: int, state: CellState) -> None:
        self._board.set_cell_state(x, y, state)

    def set_cell_draw(self, x: int, y: int, draw: CellDraw) -> None:
        self._board.set_cell_draw(x, y, draw)

    def set_field_draw(self, draws: Iterable[int]) -> None:
        """Replace every draw state of the board at once."""
        board = self._board
        values = [CellDraw(draw) for draw in draws]
        if len(values) != board.area:
            raise ValueError(f"draw list must have {board.area} cells, got {len(values)}")
        board.draws = values