"""TCP server, game logic and SQLite storage for a two-player Battleship game."""

__version__ = "1.0.0"