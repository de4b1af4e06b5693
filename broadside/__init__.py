"""Client for two-player networked Battleship."""

__version__ = "0.1.0"
