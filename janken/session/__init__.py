"""
Session Module - Manages ephemeral game sessions.

A session represents one play-through against the computer:
- Created when the user starts a game
- Holds the store, controller and scheduler for that game
- Moves between rounds through its GameLoop
- Dropped when the game ends

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "TurnResult",
]
