"""Request handling for the battleship server, independent of the transport."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Union

from seabattle_server.client import Client, ClientStatus, Readiness
from seabattle_server.field import CellDraw, Field
from seabattle_server.game import Game, GameState
from seabattle_server.ships import field_to_binary, mark_killed_ship

if TYPE_CHECKING:
    from seabattle_server.database import Database

FIELD_STRING_LENGTH = 100
MESSAGE_END = b"@"

logger = logging.getLogger(__name__)


class _WrongRequest(Exception):
    """A request that is missing parts or holds malformed values."""


def _part(parts: list[str], index: int) -> str:
    if index >= len(parts):
        raise _WrongRequest(f"missing part {index}")
    return parts[index]


def _number(parts: list[str], index: int) -> int:
    text = _part(parts, index)
    try:
        return int(text)
    except ValueError:
        raise _WrongRequest(f"not a number: {text!r}") from None


class GameServer:
    """Keeps track of clients, logins and games and answers their requests.

    Every message sent to a client is terminated with ``@``. ``log`` receives
    the human-readable server log lines.
    """

    def __init__(
        self,
        database: Optional["Database"] = None,
        log: Optional[Callable[[str], object]] = None,
    ):
        self.database = database
        self.log = log
        self.clients: dict[int, Client] = {}
        self.logins: dict[int, str] = {}
        self.games: dict[int, Game] = {}
        self.on_disconnect: Optional[Callable[[int], object]] = None
        self._buffers: dict[int, bytes] = {}
        self._last_game_id = 0

    def _print(self, message: str) -> None:
        logger.info(message)
        if self.log is not None:
            self.log(message)

    @staticmethod
    def _send(client: Client, message: str) -> None:
        client.send((message + "@").encode("utf-8"))

    # Clients and logins

    def add_client(self, client_id: int, send: Callable[[bytes], object]) -> Client:
        """Register a newly connected client."""
        client = Client(client_id, send)
        self.clients[client_id] = client
        self._buffers[client_id] = b""
        return client

    def remove_client(self, client_id: int) -> Optional[Client]:
        """Forget a client and its login; return it, or None if unknown."""
        client = self.clients.pop(client_id, None)
        self.logins.pop(client_id, None)
        self._buffers.pop(client_id, None)
        if client is not None:
            client.status = ClientStatus.DISCONNECTED
        return client

    def find_client(self, login: str) -> Optional[Client]:
        return next((c for c in self.clients.values() if c.login == login), None)

    def is_logged_in(self, login: str) -> bool:
        return login in self.logins.values()

    def check_login(self, login: str) -> bool:
        """Tell whether a login is still free."""
        if self.is_logged_in(login):
            return False
        self._print(f"client {login} connected")
        return True

    def _client_by_login(self, login: str) -> Optional[Client]:
        for client_id, name in self.logins.items():
            if name == login:
                return self.clients.get(client_id)
        return None

    # Incoming data

    def receive(self, client_id: int, data: bytes) -> None:
        """Feed raw bytes from a client; every complete ``@``-terminated request is handled."""
        if client_id not in self.clients:
            raise KeyError(f"unknown client {client_id}")
        buffer = self._buffers.get(client_id, b"") + data
        *requests, rest = buffer.split(MESSAGE_END)
        self._buffers[client_id] = rest
        for request in requests:
            if client_id not in self.clients:
                break
            self._print(f"client{client_id}: {request.decode('utf-8', 'replace')}")
            self.handle_data(request, client_id)

    def handle_data(self, data: Union[bytes, str], client_id: int) -> None:
        """Handle one request from a client."""
        text = data.decode("utf-8", "replace") if isinstance(data, bytes) else data
        request = text.strip()
        client = self.clients[client_id]
        try:
            self._dispatch(client, request)
        except _WrongRequest as exc:
            logger.debug("wrong request %r: %s", request, exc)
            self._print("Wrong request")

    def _dispatch(self, client: Client, request: str) -> None:
        if request.startswith("MESSAGE:"):
            self._on_message(client, request)
        elif request.startswith("AUTH:"):
            self._on_auth(client, request[len("AUTH:"):])
        elif request.startswith("USERS:"):
            self.handle_users_request()
        elif request.startswith("UPDATE:"):
            self.handle_update_request(client.client_id)
        elif request.startswith("READINESS:"):
            value = _number(request.split(":"), 1)
            try:
                client.readiness = Readiness(value)
            except ValueError:
                raise _WrongRequest(f"unknown readiness {value}") from None
            self.handle_users_request()
        elif request.startswith("CONNECTION:"):
            self._on_connection(client, request)
        elif request.startswith("GAME:"):
            self._on_game(request)
        elif request.startswith("HISTORY:UPDATE:"):
            history = self.database.games_endings() if self.database else []
            self.send_games_history(history)
        elif request.startswith("GENERATE:"):
            self._on_generate(client)
        elif request.startswith("EXIT:"):
            self.handle_exit_request(client.client_id)

    def _on_message(self, client: Client, request: str) -> None:
        parts = request.split(":")
        receiver_login = _part(parts, 1)
        message = _part(parts, 2)
        self._print(f"sender: {client.login}, receiver:{receiver_login}")
        if receiver_login == "all":
            self.send_message_to_all(f"MESSAGE:all:{client.login}:{message}")
            return
        receiver = self._client_by_login(receiver_login)
        if receiver is None:
            self._print("No such user")
            return
        answer = f"MESSAGE:{client.login}:{message}"
        self._send(receiver, answer)
        self._print(answer)

    def _on_auth(self, client: Client, login: str) -> None:
        if self.check_login(login):
            self.logins[client.client_id] = login
            client.login = login
            self._send(client, "AUTH:SUCCESS")
            client.status = ClientStatus.AUTHORIZED
            self._print("AUTH SUCCESS!!!")
        else:
            self._print(f"AUTH UNSUCCESS... Already have {login} login")
            self._send(client, "AUTH:UNSUCCESS")
            client.status = ClientStatus.CONNECTED
        self._print("Send client connection status - YES")

    def _on_connection(self, client: Client, request: str) -> None:
        parts = request.split(":")
        receiver_login = _part(parts, 1)
        receiver = self._client_by_login(receiver_login)
        if receiver is None:
            self._print("No such user")
            return
        answer = f"CONNECTION:{client.login}"
        if len(parts) == 3:
            answer += f":{parts[2]}"
        elif len(parts) != 2:
            logger.debug("wrong CONNECTION request: %r", request)
        self._send(receiver, answer)
        self._print(answer)

    def _on_game(self, request: str) -> None:
        parts = request.split(":")
        if len(parts) == 4:
            if parts[1] != "START":
                raise _WrongRequest("expected GAME:START")
            self.start_game(parts[2], parts[3])
        elif len(parts) == 3:
            if parts[2] != "FINISH":
                raise _WrongRequest("expected GAME:<id>:FINISH")
            self.finish_game(_number(parts, 1))
        elif len(parts) >= 5:
            game_id = _number(parts, 1)
            login = parts[2]
            game = self.games.get(game_id)
            if game is None:
                logger.debug("no such game %s", game_id)
                return
            is_started = login == game.started.login
            if parts[3] == "FIELD":
                self._on_field(game, is_started, parts[4])
            elif parts[3] == "SHOT":
                self._on_shot(game, is_started, _number(parts, 4), _number(parts, 5))
            else:
                logger.debug("wrong GAME request: %r", request)
        else:
            raise _WrongRequest("malformed GAME request")

    def _on_field(self, game: Game, is_started: bool, field_text: str) -> None:
        binary = field_to_binary(field_text)
        player = game.started if is_started else game.accepted
        try:
            player.init_field(binary)
        except ValueError as exc:
            raise _WrongRequest(str(exc)) from None
        game.inc_placed()
        if game.placed == 2:
            self._send(game.accepted, "GAME:FIGHT")
            self._send(game.started, "GAME:FIGHT")
            game.update_state(GameState.STARTED_STEP)

    def _on_shot(self, game: Game, is_started: bool, x: int, y: int) -> None:
        enemy = game.accepted if is_started else game.started
        if enemy.field is None:
            raise _WrongRequest(f"player {enemy.login!r} has no field yet")
        finished = False
        if not enemy.is_cell_empty(x, y):
            game.inc_damaged(is_started)
            if enemy.is_killed(x, y):
                result = "KILLED"
                mark_killed_ship(enemy.field, x, y)
                self.send_field_draw_to_users(enemy)
                finished = game.check_finish(is_started)
            else:
                enemy.set_cell_draw(x, y, CellDraw.DAMAGED)
                result = "DAMAGED"
        else:
            enemy.set_cell_draw(x, y, CellDraw.DOT)
            result = "DOT"
            game.update_state(
                GameState.ACCEPTED_STEP if is_started else GameState.STARTED_STEP
            )
        message = f"SHOT:{result}:{x}:{y}"
        self._send(game.started, message)
        self._send(game.accepted, message)
        if finished:
            game.update_state(GameState.FINISHED)
            game.winner_login = enemy.enemy.login if enemy.enemy else ""
            self.finish_game(game.game_id)

    def _on_generate(self, client: Client) -> None:
        text = self.database.random_field() if self.database else ""
        if len(text) < FIELD_STRING_LENGTH:
            logger.debug("wrong field generated by the database: %r", text)
            return
        try:
            field = Field(text)
        except ValueError as exc:
            logger.debug("stored field is malformed: %s", exc)
            return
        self._send(client, "GENERATE:" + field.field_str())

    # Answers

    def _users_answer(self) -> str:
        users = [
            f"{c.login}:{int(c.status)}:{int(c.readiness)}"
            for c in self.clients.values()
            if c.is_authorized()
        ]
        return "USERS:" + " ".join(users)

    def handle_users_request(self) -> None:
        """Send the list of authorized users to every authorized user."""
        answer = self._users_answer()
        for client in list(self.clients.values()):
            if client.is_authorized():
                self._send(client, answer)
                self._print(f"to {client.login} : {answer}")

    def handle_update_request(self, client_id: int) -> None:
        """Send the list of authorized users to one client."""
        answer = self._users_answer()
        self._send(self.clients[client_id], answer)
        self._print(answer)

    def handle_exit_request(self, client_id: int) -> None:
        """Disconnect a client, forget it and tell the others."""
        client = self.clients.get(client_id)
        if client is None:
            return
        login = client.login
        self._print(f"User {login} is disconnected")
        self.remove_client(client_id)
        if self.on_disconnect is not None:
            self.on_disconnect(client_id)
        if client_id not in self.clients and client_id not in self.logins:
            self._print(f"User {login} is really deleted")
        self.handle_users_request()

    def send_message_to_all(self, message: str) -> None:
        for client in list(self.clients.values()):
            self._send(client, message)
            self._print(f"{message} to {client.login}")

    def send_field_draw_to_users(self, client: Client) -> None:
        """Send a player's board to them and to their opponent."""
        draw = client.field.draw_str() if client.field else ""
        self._send(client, "FIELD:UPDATE:MY:" + draw)
        if client.enemy is not None:
            self._send(client.enemy, "FIELD:UPDATE:ENEMY:" + draw)

    def send_games_history(self, history: Iterable[str]) -> None:
        self.send_message_to_all("HISTORY:UPDATE:" + "$$".join(history))

    # Games

    def start_game(self, login_started: str, login_accepted: str) -> Optional[Game]:
        """Open a game between two logged-in players and tell both."""
        started = self.find_client(login_started)
        accepted = self.find_client(login_accepted)
        if started is None or accepted is None:
            self._print("No such user")
            return None
        started.enemy = accepted
        accepted.enemy = started
        self._last_game_id += 1
        game_id = self._last_game_id
        game = Game(game_id, started, accepted)
        game.start_time = datetime.now()
        self.games[game_id] = game
        self._print("New game inserted in games_")
        self._send(started, f"GAME:START:{login_accepted}:{game_id}")
        self._send(accepted, f"GAME:START:{login_started}:{game_id}")
        game.update_state(GameState.PLACING)
        self._print(f"Start game {login_started} vs {login_accepted} with gameId={game_id}")
        return game

    def finish_game(self, game_id: int) -> None:
        """End a game: report the winner if it is over, otherwise report a stop."""
        for game in self.games.values():
            self._print(
                f"game {game.game_id} {game.started.login} vs {game.accepted.login}"
            )
        game = self.games.get(game_id)
        if game is None:
            self._print(f"Game {game_id} not found")
            return
        login1, login2 = game.started.login, game.accepted.login
        self._print(f"login1: {login1}, login2: {login2}")
        if game.state == GameState.FINISHED:
            if not game.winner_login:
                logger.debug("game %s has no winner yet", game_id)
                return
            message = "GAME:FINISH:" + game.winner_login
            self._print(f"Finish game {login1} vs {login2} with gameId={game_id}")
            game.end_time = datetime.now()
            if self.database is not None:
                self.database.add_game_ending(game)
                self.send_games_history(self.database.games_endings())
        else:
            message = "GAME:STOP"
            self._print(f"Stop game {login1} vs {login2} with gameId={game_id}")
        self._send(game.started, message)
        self._send(game.accepted, message)
        self._print(f"{message} to {login1}")
        self._print(f"{message} to {login2}")
        del self.games[game_id]

    def load_placements(self, lines: Iterable[str]) -> int:
        """Store ship placements, one per line; return how many were stored."""
        if self.database is None:
            raise RuntimeError("no database to store placements in")
        count = 0
        for line in lines:
            self.database.add_placement(line.rstrip("\r\n"))
            count += 1
        return count