import pytest

from seabattle_server.client import Client
from seabattle_server.field import EXAMPLE_FIELD
from seabattle_server.game import N_DECKS, Game, GameState


def make_game():
    first = Client(1, lambda data: None)
    first.login = "alice"
    second = Client(2, lambda data: None)
    second.login = "bob"
    return Game(5, first, second)


def test_initial_state():
    game = make_game()
    assert game.state == GameState.NSTARTED
    assert game.placed == 0
    assert game.decks == N_DECKS
    assert game.winner_login == ""
    assert game.started.login == "alice"
    assert game.accepted.login == "bob"


def test_deck_count_matches_example_layout():
    assert N_DECKS == EXAMPLE_FIELD.count("1")


def test_update_state():
    game = make_game()
    game.update_state(GameState.PLACING)
    assert game.state == GameState.PLACING
    game.update_state(GameState.FINISHED)
    assert game.state == GameState.FINISHED


def test_inc_placed():
    game = make_game()
    game.inc_placed()
    game.inc_placed()
    assert game.placed == 2


def test_inc_damaged_counts_sides_separately():
    game = make_game()
    game.inc_damaged(True)
    game.inc_damaged(True)
    game.inc_damaged(False)
    assert game.started_damaged == 2
    assert game.accepted_damaged == 1


def test_check_finish_after_all_decks():
    game = make_game()
    for _ in range(N_DECKS - 1):
        game.inc_damaged(True)
    assert not game.check_finish(True)
    game.inc_damaged(True)
    assert game.check_finish(True)
    assert not game.check_finish(False)


def test_set_fields_round_trip():
    game = make_game()
    game.set_started_field(EXAMPLE_FIELD)
    game.set_accepted_field(EXAMPLE_FIELD[::-1])
    assert game.started_field.field_str() == EXAMPLE_FIELD
    assert game.accepted_field.field_str() == EXAMPLE_FIELD[::-1]


def test_set_field_states_round_trip():
    game = make_game()
    states = "1" + "0" * 99
    game.set_started_field_state(states)
    game.set_accepted_field_state(states)
    assert game.started_field.state_str() == states
    assert game.accepted_field.state_str() == states


def test_invalid_field_raises():
    game = make_game()
    with pytest.raises(ValueError):
        game.set_started_field("12")
    with pytest.raises(ValueError):
        game.set_accepted_field_state("9" * 100)