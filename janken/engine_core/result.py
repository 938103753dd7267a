"""
Results - Command outcomes and game-over results.

Commands never raise for ordinary rejections; they return a
CommandResult carrying an ErrorCode so callers can re-prompt.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


DRAW_WINNER = "DRAW"


class ErrorCode(str, Enum):
    """Structured rejection codes."""
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    NOT_PLAYER_TURN = "NOT_PLAYER_TURN"
    INVALID_PHASE = "INVALID_PHASE"
    GAME_NOT_OVER = "GAME_NOT_OVER"


class GameOverReason(str, Enum):
    COINS_DEPLETED = "COINS_DEPLETED"
    HAND_EXHAUSTED = "HAND_EXHAUSTED"


@dataclass(frozen=True)
class CommandResult:
    """
    Result of a controller command.

    Contains:
    - Whether the command was accepted
    - Error code and message (if rejected)
    """
    success: bool
    error_code: ErrorCode | None = None
    error: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls) -> CommandResult:
        return cls(success=True)

    @classmethod
    def failure(cls, error_code: ErrorCode, error: str) -> CommandResult:
        """Create a rejection result."""
        return cls(success=False, error_code=error_code, error=error)


@dataclass(frozen=True)
class GameOverResult:
    """
    How a finished game ended.

    winner is a player id, or DRAW_WINNER when coins are tied after
    every hand is exhausted.
    """
    winner: str
    reason: GameOverReason
    final_scores: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "final_scores", MappingProxyType(dict(self.final_scores)))

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW_WINNER
