"""Battleship playing field: ship cells, ship-part states and draw states."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from enum import IntEnum
from typing import Optional, TypeVar

FIELD_WIDTH_DEFAULT = 10
FIELD_HEIGHT_DEFAULT = 10
DEFAULT_SEARCH_INTERVAL = 3000  # milliseconds
MAX_SHIP_LENGTH = 4

EXAMPLE_FIELD = (
    "1111011100"
    "0000000000"
    "1110110110"
    "0000000000"
    "1101010101"
    "0000000000"
    "0000000000"
    "0000000000"
    "0000000000"
    "0000000000"
)

log = logging.getLogger(__name__)


class Cell(IntEnum):
    """Content of a cell: water or part of a ship."""

    EMPTY = 0
    SHIP = 1


class CellState(IntEnum):
    """Which part of a ship a cell holds."""

    EMPTY = 0
    CENTER = 1
    TOP = 2
    BOTTOM = 3
    VMIDDLE = 4
    HMIDDLE = 5
    LEFT = 6
    RIGHT = 7
    UNDEFINED = 8


class CellDraw(IntEnum):
    """How a cell is shown to the players."""

    EMPTY = 0
    LIVE = 1
    DOT = 2
    DAMAGED = 3
    KILLED = 4
    MARK = 5


_E = TypeVar("_E", bound=IntEnum)

# Directions to walk from a hit cell to check the rest of its ship.
_KILL_DIRECTIONS: dict[CellState, tuple[tuple[int, int], ...]] = {
    CellState.CENTER: (),
    CellState.TOP: ((0, 1),),
    CellState.BOTTOM: ((0, -1),),
    CellState.LEFT: ((1, 0),),
    CellState.RIGHT: ((-1, 0),),
    CellState.VMIDDLE: ((0, 1), (0, -1)),
    CellState.HMIDDLE: ((1, 0), (-1, 0)),
}

_HIT_DRAWS = (CellDraw.KILLED, CellDraw.DAMAGED)


def _parse(text: str, kind: type[_E], area: int, what: str) -> list[_E]:
    if len(text) != area:
        raise ValueError(f"{what} must have {area} cells, got {len(text)}")
    try:
        return [kind(int(ch)) for ch in text]
    except ValueError:
        raise ValueError(f"{what} holds an invalid cell value: {text!r}") from None


def _to_str(values: Iterable[IntEnum]) -> str:
    return "".join(str(int(value)) for value in values)


def format_grid(values: Iterable[int]) -> str:
    """Lay a square sequence of cell values out as rows of numbers."""
    items = [int(value) for value in values]
    side = math.isqrt(len(items))
    rows = (items[row * side:(row + 1) * side] for row in range(side))
    return "\n".join(" ".join(str(value) for value in row) for row in rows)


class Field:
    """A player's board with ship layout, ship-part states and draw states."""

    def __init__(self, field: Optional[str] = None, field_state: Optional[str] = None):
        self.width = FIELD_WIDTH_DEFAULT
        self.height = FIELD_HEIGHT_DEFAULT
        self.cells: list[Cell] = []
        self.states: list[CellState] = []
        self.draws: list[CellDraw] = []
        self.clear()
        if field is not None:
            self.load_cells(field)
            if field_state is None:
                self.init_states()
        if field_state is not None:
            self.load_states(field_state)

    @property
    def area(self) -> int:
        return self.width * self.height

    def _index(self, x: int, y: int) -> Optional[int]:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.width * y + x
        return None

    def _state_at(self, x: int, y: int) -> CellState:
        index = self._index(x, y)
        return CellState.EMPTY if index is None else self.states[index]

    def _draw_at(self, x: int, y: int) -> CellDraw:
        index = self._index(x, y)
        return CellDraw.EMPTY if index is None else self.draws[index]

    def get_cell(self, x: int, y: int) -> Cell:
        """Return the cell at (x, y); cells off the board count as empty."""
        index = self._index(x, y)
        if index is None:
            log.debug("Wrong cell indexes (%s, %s)", x, y)
            return Cell.EMPTY
        return self.cells[index]

    def set_cell(self, x: int, y: int, cell: Cell) -> None:
        index = self._index(x, y)
        if index is None:
            raise IndexError(f"no such cell ({x}, {y})")
        self.cells[index] = Cell(cell)

    def load_cells(self, text: str) -> None:
        """Replace the ship layout with one given as a string of 0/1 digits."""
        self.cells = _parse(text, Cell, self.area, "field string")

    def load_states(self, text: str) -> None:
        """Replace the ship-part states with ones given as a string of digits."""
        self.states = _parse(text, CellState, self.area, "field state string")

    def field_str(self) -> str:
        return _to_str(self.cells)

    def state_str(self) -> str:
        return _to_str(self.states)

    def draw_str(self) -> str:
        return _to_str(self.draws)

    def clear(self) -> None:
        self.cells = [Cell.EMPTY] * self.area
        self.states = [CellState.EMPTY] * self.area
        self.draws = [CellDraw.EMPTY] * self.area

    def generate(self) -> None:
        """Load the built-in example ship layout."""
        self.load_cells(EXAMPLE_FIELD)
        log.debug("Generated field: %s", self.field_str())

    def init_draw(self) -> None:
        """Show every ship cell as live and every other cell as empty."""
        self.draws = [
            CellDraw.LIVE if cell == Cell.SHIP else CellDraw.EMPTY for cell in self.cells
        ]

    def init_states(self) -> None:
        """Work out which ship part every ship cell is.

        Ships are traced left to right and top to bottom. A ship longer than
        the maximum stops the tracing and leaves the ship cells undefined.
        """
        initial = [
            CellState.UNDEFINED if cell == Cell.SHIP else CellState.EMPTY
            for cell in self.cells
        ]
        self.states = list(initial)
        grid = {
            (x, y): initial[self.width * y + x]
            for y in range(self.height)
            for x in range(self.width)
        }

        for y in range(self.height):
            for x in range(self.width):
                if grid[(x, y)] != CellState.UNDEFINED:
                    continue
                if grid.get((x + 1, y), CellState.EMPTY) != CellState.EMPTY:
                    length = self._trace(
                        grid, x, y, 1, 0, CellState.LEFT, CellState.HMIDDLE, CellState.RIGHT
                    )
                elif grid.get((x, y + 1), CellState.EMPTY) != CellState.EMPTY:
                    length = self._trace(
                        grid, x, y, 0, 1, CellState.TOP, CellState.VMIDDLE, CellState.BOTTOM
                    )
                else:
                    grid[(x, y)] = CellState.CENTER
                    continue
                if length > MAX_SHIP_LENGTH:
                    log.debug("Ship at (%s, %s) is too long: %s", x, y, length)
                    return

        self.states = [
            grid[(x, y)] for y in range(self.height) for x in range(self.width)
        ]
        log.debug("Field states:\n%s", format_grid(self.states))

    @staticmethod
    def _trace(
        grid: dict[tuple[int, int], CellState],
        x: int,
        y: int,
        dx: int,
        dy: int,
        first: CellState,
        middle: CellState,
        last: CellState,
    ) -> int:
        grid[(x, y)] = first
        cx, cy = x + dx, y + dy
        length = 2
        while grid.get((cx + dx, cy + dy), CellState.EMPTY) != CellState.EMPTY:
            grid[(cx, cy)] = middle
            cx, cy = cx + dx, cy + dy
            length += 1
        grid[(cx, cy)] = last
        return length

    def is_cell_empty(self, x: int, y: int) -> bool:
        return self.get_cell(x, y) == Cell.EMPTY

    def is_correct(self) -> bool:
        """Placement validation is permissive: every placement is accepted."""
        return True

    def is_killed(self, x: int, y: int) -> bool:
        """Mark (x, y) as damaged and tell whether its whole ship is now hit."""
        self.set_cell_draw(x, y, CellDraw.DAMAGED)
        state = self._state_at(x, y)
        directions = _KILL_DIRECTIONS.get(state)
        if directions is None:
            log.debug("is_killed: unknown cell state %s at (%s, %s)", state, x, y)
            return False
        return all(self._hit_along(x, y, dx, dy) for dx, dy in directions)

    def _hit_along(self, x: int, y: int, dx: int, dy: int) -> bool:
        cx, cy = x + dx, y + dy
        while self._state_at(cx, cy) != CellState.EMPTY:
            if self._draw_at(cx, cy) not in _HIT_DRAWS:
                return False
            cx, cy = cx + dx, cy + dy
        return True

    def set_cell_state(self, x: int, y: int, state: CellState) -> None:
        """Set the ship-part state of a cell; cells off the board are ignored."""
        index = self._index(x, y)
        if index is not None:
            self.states[index] = CellState(state)

    def set_cell_draw(self, x: int, y: int, draw: CellDraw) -> None:
        """Set the draw state of a cell; cells off the board are ignored."""
        index = self._index(x, y)
        if index is not None:
            self.draws[index] = CellDraw(draw)