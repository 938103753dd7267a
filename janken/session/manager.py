"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Caller starts a session -> store, controller and loop are built
   and the first game is dealt
2. During the game, the human plays cards through the session's loop
3. Game ends or caller quits -> session ended, state dropped

PERSISTENCE RULES:
- Sessions are in-memory only
- Nothing survives a process restart
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import time
import uuid

from ..config import GameConfig
from ..engine_core.state import GamePhase, create_initial_state
from ..engine_core.store import GameStateStore
from ..engine_core.controller import GameController
from ..engine_core.scheduler import ManualScheduler, Scheduler
from ..bots import OpponentPolicy, RandomPolicy
from .game_loop import GameLoop

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The validated config
    - The store and the controller that writes to it
    - The scheduler that times reveals
    - The loop that moves between rounds
    """
    session_id: str
    config: GameConfig
    store: GameStateStore
    controller: GameController
    scheduler: Scheduler
    created_at: float

    state: SessionState = SessionState.ACTIVE
    game_loop: GameLoop | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        if self.state != SessionState.ACTIVE:
            return False
        return self.store.get_state().phase != GamePhase.GAME_OVER

    @property
    def human_player_id(self) -> str | None:
        human = self.store.get_state().human_player
        return human.player_id if human else None


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from a config
    - Track active sessions
    - Clean up finished or stale sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, scheduler_factory: Callable[[], Scheduler] | None = None):
        self._sessions: dict[str, Session] = {}
        self.scheduler_factory = scheduler_factory or ManualScheduler

    def create_session(
        self,
        config: GameConfig | None = None,
        seed: int | None = None,
        policy: OpponentPolicy | None = None,
        scheduler: Scheduler | None = None,
        auto_advance: bool = True,
    ) -> Session:
        """
        Create a new game session with a freshly dealt game.

        Args:
            config: Validated game config (defaults if omitted)
            seed: Seed for the random opponent
            policy: Opponent policy (overrides seed)
            scheduler: Scheduler for presentation delays
            auto_advance: Whether the loop moves between rounds by itself

        Returns:
            New Session in READY phase
        """
        config = config or GameConfig.default()
        scheduler = scheduler or self.scheduler_factory()

        store = GameStateStore(create_initial_state(config))
        controller = GameController(
            store,
            config,
            policy=policy or RandomPolicy(seed=seed),
            scheduler=scheduler,
        )

        session = Session(
            session_id=str(uuid.uuid4()),
            config=config,
            store=store,
            controller=controller,
            scheduler=scheduler,
            created_at=time.time(),
        )
        session.game_loop = GameLoop(session, auto_advance=auto_advance)
        controller.initialize()

        self._sessions[session.session_id] = session
        logger.info("Session %s created", session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop it from memory.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False

        if reason == "completed":
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED

        if session.game_loop:
            session.game_loop.close()
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        End sessions older than max_age that are no longer active.

        Returns the number removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
