"""A game between the player who proposed it and the player who accepted."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import IntEnum
from typing import Optional

from seabattle_server.client import Client
from seabattle_server.field import Field

# One four-deck, two three-deck, three two-deck and four one-deck ships.
N_DECKS = 4 * 1 + 3 * 2 + 2 * 3 + 1 * 4

log = logging.getLogger(__name__)


class GameState(IntEnum):
    """Stage of a game."""

    NSTARTED = 0
    PLACING = 1
    STARTED_STEP = 2
    ACCEPTED_STEP = 3
    FINISHED = 4


class Game:
    """Turn, placement and hit bookkeeping for one game."""

    def __init__(self, game_id: int, started: Client, accepted: Client):
        self.game_id = game_id
        self.started = started
        self.accepted = accepted
        self.state = GameState.NSTARTED
        self.placed = 0
        self.decks = N_DECKS
        self.started_damaged = 0
        self.accepted_damaged = 0
        self.winner_login = ""
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.started_field = Field()
        self.accepted_field = Field()

    def __repr__(self) -> str:
        return (
            f"Game(id={self.game_id}, {self.started.login!r} vs "
            f"{self.accepted.login!r}, state={self.state.name})"
        )

    def update_state(self, state: GameState) -> None:
        self.state = GameState(state)
        log.debug("game %s state updated to %s", self.game_id, self.state.name)

    def inc_placed(self) -> None:
        """Count one more player who has placed their ships."""
        self.placed += 1

    def inc_damaged(self, started_damaged: bool) -> None:
        """Count one more hit deck on the chosen side."""
        if started_damaged:
            self.started_damaged += 1
            log.debug("started damaged: %s", self.started_damaged)
        else:
            self.accepted_damaged += 1
            log.debug("accepted damaged: %s", self.accepted_damaged)

    def check_finish(self, started_killed: bool) -> bool:
        """Tell whether every deck on the chosen side has been hit."""
        damaged = self.started_damaged if started_killed else self.accepted_damaged
        return damaged == self.decks

    def set_started_field(self, field: str) -> None:
        self.started_field.load_cells(field)

    def set_accepted_field(self, field: str) -> None:
        self.accepted_field.load_cells(field)

    def set_started_field_state(self, field: str) -> None:
        self.started_field.load_states(field)

    def set_accepted_field_state(self, field: str) -> None:
        self.accepted_field.load_states(field)