"""Helpers for field strings from players and for marking sunk ships."""

from __future__ import annotations

import logging

from seabattle_server.field import Cell, CellDraw, CellState, Field

log = logging.getLogger(__name__)

# For each ship-part state: (walk back to the first cell?, step along the ship).
_SHIP_WALKS: dict[CellState, tuple[bool, tuple[int, int]]] = {
    CellState.TOP: (False, (0, 1)),
    CellState.BOTTOM: (False, (0, -1)),
    CellState.LEFT: (False, (1, 0)),
    CellState.RIGHT: (False, (-1, 0)),
    CellState.VMIDDLE: (True, (0, 1)),
    CellState.HMIDDLE: (True, (1, 0)),
}


def field_to_binary(text: str) -> str:
    """Turn a ship-part state string into a 0/1 layout; unknown characters are dropped."""
    result = []
    for ch in text:
        value = int(ch) if ch.isdecimal() else -1
        if value == 0:
            result.append(str(int(Cell.EMPTY)))
        elif 0 < value < 9:
            result.append(str(int(Cell.SHIP)))
        else:
            log.debug("wrong character in field string: %r", ch)
    return "".join(result)


def _state(field: Field, x: int, y: int) -> CellState:
    if 0 <= x < field.width and 0 <= y < field.height:
        return field.states[field.width * y + x]
    return CellState.EMPTY


def _ship_cells(field: Field, x: int, y: int) -> list[tuple[int, int]]:
    state = _state(field, x, y)
    if state == CellState.CENTER:
        return [(x, y)]
    walk = _SHIP_WALKS.get(state)
    if walk is None:
        return []
    rewind, (dx, dy) = walk
    if rewind:
        while _state(field, x - dx, y - dy) != CellState.EMPTY:
            x, y = x - dx, y - dy
    cells = []
    while _state(field, x, y) != CellState.EMPTY:
        cells.append((x, y))
        x, y = x + dx, y + dy
    return cells


def mark_killed_ship(field: Field, x: int, y: int) -> list[tuple[int, int]]:
    """Draw the ship through (x, y) as killed and the water around it as misses.

    Returns the cells of the ship; an empty list when (x, y) holds no ship part,
    in which case nothing is drawn.
    """
    cells = _ship_cells(field, x, y)
    if not cells:
        log.debug("mark_killed_ship: unknown cell state at (%s, %s)", x, y)
        return []
    xs = [cx for cx, _ in cells]
    ys = [cy for _, cy in cells]
    for cy in range(min(ys) - 1, max(ys) + 2):
        for cx in range(min(xs) - 1, max(xs) + 2):
            field.set_cell_draw(cx, cy, CellDraw.DOT)
    for cx, cy in cells:
        field.set_cell_draw(cx, cy, CellDraw.KILLED)
    return cells