# seabattle-server

This is a TCP server for a networked two-player Battleship ("Sea Battle") game.
It handles logins, a shared user list, chat messages, game invitations, ship
placement, shots and the end of each game. It stores finished games in a SQLite
database. It can also hand out random ship placements that are stored in the
same database.

The package depends only on the Python standard library.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install .[test]
```

## Running the server

```
seabattle-server
```

By default the server listens on `0.0.0.0`, port 50000, and keeps its data in
`data.db` in the current directory. It accepts these options:

| Option | Meaning |
|---|---|
| `--port N` | port to listen on (default 50000) |
| `--host ADDR` | address to listen on (default `0.0.0.0`) |
| `--db PATH` | path of the SQLite database (default `data.db`) |
| `--placements FILE` | store the ship placements in FILE, one per line, before serving |

The server runs until you interrupt it. If it cannot listen on the port, it
exits with status 1.

On start, the server creates these two tables if they do not exist yet:

- `Fields` holds ship placements, one string per row. The `GENERATE:` request
  draws from this table. A placement is only sent when it is a valid
  100-character string of 0/1 digits.
- `GamesEndings` holds one row for each finished game: both logins, both ship
  layouts drawn as `□`/`■` squares, the start and end times, and the winner.

## Protocol

Messages are UTF-8 text, and each one ends with `@`. Clients send these
requests:

| Request | Meaning |
|---|---|
| `AUTH:<login>` | log in; the reply is `AUTH:SUCCESS`, or `AUTH:UNSUCCESS` if the login is taken |
| `USERS:` | send the user list (`USERS:<login>:<status>:<readiness> ...`) to every logged-in client |
| `UPDATE:` | send the user list to the client that asked |
| `READINESS:<n>` | set your readiness (0 not ready, 1 ready, 2 playing), then resend the user list to all |
| `MESSAGE:<login>:<text>` | send a private message; the receiver gets `MESSAGE:<sender>:<text>` |
| `MESSAGE:all:<text>` | send a message to everyone as `MESSAGE:all:<sender>:<text>` |
| `CONNECTION:<login>[:<answer>]` | invite a player, or answer an invitation; the other player gets `CONNECTION:<sender>[:<answer>]` |
| `GAME:START:<started>:<accepted>` | open a game; both players get `GAME:START:<opponent>:<id>` |
| `GAME:<id>:<login>:FIELD:<cells>` | send your ship placement; once both players have sent one, both get `GAME:FIGHT` |
| `GAME:<id>:<login>:SHOT:<x>:<y>` | fire at the opponent's field |
| `GAME:<id>:FINISH` | stop a game that is still running (both players get `GAME:STOP`) |
| `GENERATE:` | ask for a random stored placement, sent back as `GENERATE:<cells>` |
| `HISTORY:UPDATE:` | send the list of finished games to everyone |
| `EXIT:` | leave the server |

A shot is answered to both players with `SHOT:DOT|DAMAGED|KILLED:<x>:<y>`. When a
ship is sunk, the server marks the water around it as misses. The owner then
gets `FIELD:UPDATE:MY:<draw>` and the opponent gets
`FIELD:UPDATE:ENEMY:<draw>`. When every deck of one side has been hit, both
players get `GAME:FINISH:<winner>`. The game is then stored, and everyone gets
`HISTORY:UPDATE:<game>$$<game>...`. Each game in that list is seven
colon-separated fields. When the server stops, every client gets `STOP:`.

## Library use

You can use the game logic without any networking:

```python
from seabattle_server.field import Field

field = Field("1111011100" + "0" * 90)
field.init_draw()
print(field.state_str())     # ship-part state of every cell
print(field.is_killed(0, 0)) # marks (0, 0) damaged; False, the ship still has live cells
```

The package holds these modules:

- `seabattle_server.field`: `Field`, together with the `Cell`, `CellState` and
  `CellDraw` enums and `format_grid`.
- `seabattle_server.ships`: `field_to_binary`, which turns a placement string
  into a 0/1 layout, and `mark_killed_ship`.
- `seabattle_server.client`: `Client`, `ClientStatus` and `Readiness`.
- `seabattle_server.game`: `Game` and `GameState`.
- `seabattle_server.database`: `Database`, a context manager over SQLite, and
  `format_field`.
- `seabattle_server.server`: `GameServer`, which handles the protocol and does
  no I/O of its own. You register each client with `add_client(client_id, send)`,
  where `send` receives the bytes to deliver. You pass incoming bytes to
  `receive(client_id, data)`.
- `seabattle_server.network`: `BattleshipServer`, which runs a `GameServer`
  over asyncio TCP (`start`, `stop`, `serve_forever`, `state_text`), and the
  `main` command.

## Limitations

- The package contains no game client and no graphical window. The server log
  lines are written through `logging`, and `BattleshipServer` also collects them
  in `log_lines`.
- Ship placements are not checked against the fleet rules (`Field.is_correct`
  always returns true). A layout only has to be 100 cells of 0/1.