"""Two-player tic-tac-toe over a direct peer-to-peer link."""

__version__ = "0.1.0"
