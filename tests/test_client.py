import pytest

from seabattle_server.client import Client, ClientStatus, Readiness
from seabattle_server.field import EXAMPLE_FIELD, CellDraw, CellState

SINGLE = "1" + "0" * 99
DOUBLE = "11" + "0" * 98


def make_client():
    sent = []
    return Client(7, sent.append), sent


def test_new_client_defaults():
    client, _ = make_client()
    assert client.status == ClientStatus.CONNECTED
    assert client.readiness == Readiness.NREADY
    assert client.login == ""
    assert client.enemy is None
    assert not client.is_authorized()


def test_authorization_follows_status():
    client, _ = make_client()
    client.status = ClientStatus.AUTHORIZED
    assert client.is_authorized()
    client.status = ClientStatus.DISCONNECTED
    assert not client.is_authorized()


def test_send_is_called_with_bytes():
    client, sent = make_client()
    client.send(b"AUTH:SUCCESS@")
    assert sent == [b"AUTH:SUCCESS@"]


def test_field_str_without_field_is_empty():
    client, _ = make_client()
    assert client.field_str() == ""


def test_init_field_round_trip_and_draw():
    client, _ = make_client()
    client.init_field(EXAMPLE_FIELD)
    assert client.field_str() == EXAMPLE_FIELD
    # Live ships draw as 1 and water as 0, matching the layout digits.
    assert client.field.draw_str() == EXAMPLE_FIELD


def test_init_field_empty():
    client, _ = make_client()
    client.init_field()
    assert set(client.field_str()) == {"0"}
    assert client.is_cell_empty(3, 3)


def test_is_cell_empty_matches_layout():
    client, _ = make_client()
    client.init_field(SINGLE)
    assert not client.is_cell_empty(0, 0)
    assert client.is_cell_empty(1, 0)


def test_single_ship_killed():
    client, _ = make_client()
    client.init_field(SINGLE)
    assert client.is_killed(0, 0)
    assert client.field.draws[0] == CellDraw.DAMAGED


def test_double_ship_needs_both_hits():
    client, _ = make_client()
    client.init_field(DOUBLE)
    assert not client.is_killed(0, 0)
    assert client.is_killed(1, 0)


def test_set_cell_state_and_draw():
    client, _ = make_client()
    client.init_field()
    client.set_cell_state(2, 1, CellState.CENTER)
    client.set_cell_draw(2, 1, CellDraw.DOT)
    assert client.field.states[12] == CellState.CENTER
    assert client.field.draws[12] == CellDraw.DOT


def test_set_field_draw_replaces_all():
    client, _ = make_client()
    client.init_field()
    client.set_field_draw([CellDraw.DOT] * 100)
    assert client.field.draw_str() == "2" * 100


def test_set_field_draw_wrong_length():
    client, _ = make_client()
    client.init_field()
    with pytest.raises(ValueError):
        client.set_field_draw([CellDraw.DOT] * 5)


def test_operations_without_field_raise():
    client, _ = make_client()
    with pytest.raises(RuntimeError):
        client.is_cell_empty(0, 0)
    with pytest.raises(RuntimeError):
        client.is_killed(0, 0)