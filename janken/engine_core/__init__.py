"""
Engine Core - Game state, judgment and round progression.

The engine is the runtime that:
1. Holds GameState in an observable store
2. Deals hands and tracks coins
3. Accepts card selections and asks the opponent policy for a reply
4. Judges the round and reveals it after a presentation delay
5. Detects the end of the game
"""

from .state import (
    Card,
    CardKind,
    GamePhase,
    GameState,
    Player,
    RoundResult,
    create_initial_state,
)
from .result import CommandResult, ErrorCode, GameOverResult, GameOverReason, DRAW_WINNER
from .judge import judge_round, beats, BEATS
from .store import GameStateStore, Subscription
from .scheduler import Scheduler, ScheduledCall, ManualScheduler, AsyncioScheduler
from .controller import GameController, CardIdGenerator

__all__ = [
    "Card",
    "CardKind",
    "GamePhase",
    "GameState",
    "Player",
    "RoundResult",
    "create_initial_state",
    "CommandResult",
    "ErrorCode",
    "GameOverResult",
    "GameOverReason",
    "DRAW_WINNER",
    "judge_round",
    "beats",
    "BEATS",
    "GameStateStore",
    "Subscription",
    "Scheduler",
    "ScheduledCall",
    "ManualScheduler",
    "AsyncioScheduler",
    "GameController",
    "CardIdGenerator",
]
