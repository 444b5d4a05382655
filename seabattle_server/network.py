"""TCP front end of the battleship server and its command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import itertools
import logging
from enum import IntEnum
from pathlib import Path
from typing import Optional, Union

from seabattle_server.database import (
    FIELDS_FORMAT,
    FIELDS_TABLE,
    GAMES_ENDINGS_FORMAT,
    GAMES_ENDINGS_TABLE,
    Database,
)
from seabattle_server.server import GameServer

DEFAULT_PORT = 50000
DEFAULT_DATABASE = "data.db"
DEFAULT_HOST = "0.0.0.0"
READ_CHUNK = 4096

logger = logging.getLogger(__name__)


class ServerState(IntEnum):
    """Lifecycle stage of the server."""

    NSTARTED = 0
    STARTED = 1
    STOPPED = 2


_STATE_LABELS = {
    ServerState.NSTARTED: "NOT STARTED",
    ServerState.STARTED: "STARTED",
    ServerState.STOPPED: "STOPPED",
}


def state_label(state: int) -> str:
    """Return the human-readable name of a server state, or "NONE" if unknown."""
    try:
        return _STATE_LABELS[ServerState(state)]
    except ValueError:
        return "NONE"


class BattleshipServer:
    """Accepts player connections and feeds their requests to a GameServer."""

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        database_path: Union[str, Path] = DEFAULT_DATABASE,
        host: Optional[str] = DEFAULT_HOST,
    ):
        self.port = port
        self.host = host
        self.state = ServerState.NSTARTED
        self.database = Database(database_path)
        self.log_lines: list[str] = []
        self.game_server = GameServer(self.database, log=self._log)
        self.game_server.on_disconnect = self._close_client
        self._server: Optional[asyncio.AbstractServer] = None
        self._writers: dict[int, asyncio.StreamWriter] = {}
        self._ids = itertools.count(1)
        self._stopped: Optional[asyncio.Event] = None

    def _log(self, message: str) -> None:
        self.log_lines.append(message)

    def state_text(self) -> str:
        """Return the status line shown for the server."""
        return "SERVER " + state_label(self.state)

    async def start(self) -> None:
        """Listen for players, open the database and make sure its tables exist."""
        if self.state == ServerState.STARTED:
            raise RuntimeError("server is already started")
        try:
            self._server = await asyncio.start_server(self._handle, self.host, self.port)
        except OSError as exc:
            raise RuntimeError(
                f"Cannot start server on port {self.port}... Try again!"
            ) from exc
        sockets = self._server.sockets or ()
        if sockets:
            self.port = sockets[0].getsockname()[1]
        self.database.open()
        self.database.create_table(FIELDS_TABLE, FIELDS_FORMAT)
        self.database.create_table(GAMES_ENDINGS_TABLE, GAMES_ENDINGS_FORMAT)
        self._stopped = asyncio.Event()
        self._log("Listening")
        self.state = ServerState.STARTED

    async def stop(self) -> None:
        """Tell every player the server stops, drop them and close the database."""
        self.game_server.send_message_to_all("STOP:")
        self._log("server: STOP: to all clients")
        self.state = ServerState.STOPPED
        writers = list(self._writers.values())
        self._writers.clear()
        for writer in writers:
            writer.close()
        for writer in writers:
            with contextlib.suppress(Exception):
                await writer.wait_closed()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        self.database.close()
        if self._stopped is not None:
            self._stopped.set()

    async def serve_forever(self) -> None:
        """Start if needed and run until stopped or cancelled."""
        if self.state != ServerState.STARTED:
            await self.start()
        assert self._stopped is not None
        try:
            await self._stopped.wait()
        finally:
            if self.state == ServerState.STARTED:
                await self.stop()

    def _close_client(self, client_id: int) -> None:
        writer = self._writers.pop(client_id, None)
        if writer is not None:
            writer.close()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        client_id = next(self._ids)
        self._writers[client_id] = writer
        self.game_server.add_client(client_id, writer.write)
        self._log("Connect")
        try:
            while client_id in self.game_server.clients:
                data = await reader.read(READ_CHUNK)
                if not data:
                    break
                try:
                    self.game_server.receive(client_id, data)
                except Exception:
                    logger.exception("failed to handle data from client %s", client_id)
                if not writer.is_closing():
                    await writer.drain()
        except ConnectionError as exc:
            self._log(f"Socket error {exc}")
        finally:
            self.game_server.remove_client(client_id)
            self._writers.pop(client_id, None)
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()
            self._log(f"Disconnected socket {client_id}")


def _parse_args(argv: Optional[list[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Network battleship server.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument("--db", default=DEFAULT_DATABASE, help="path of the SQLite database")
    parser.add_argument(
        "--placements",
        type=Path,
        help="file of ship placements, one per line, to store before serving",
    )
    return parser.parse_args(argv)


async def _run(server: BattleshipServer, placements: Optional[Path]) -> None:
    await server.start()
    if placements is not None:
        with placements.open(encoding="utf-8") as lines:
            count = server.game_server.load_placements(lines)
        logger.info("stored %s placements", count)
    logger.info("%s on port %s", server.state_text(), server.port)
    await server.serve_forever()


def main(argv: Optional[list[str]] = None) -> int:
    """Run the server until interrupted."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    server = BattleshipServer(args.port, args.db, args.host)
    try:
        asyncio.run(_run(server, args.placements))
    except KeyboardInterrupt:
        pass
    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1
    return 0