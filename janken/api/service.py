"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions
3. Formats state snapshots for clients, hiding the opponent's hand

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    # Requests
    CreateSessionRequest,
    # Responses
    GameStateResponse,
    SelectCardResponse,
    GameResultResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    GameOverInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from ..config import GameConfig
from ..engine_core.state import Card, GamePhase, GameState, Player
from ..engine_core.result import GameOverResult
from ..session import SessionManager, Session


_STATUS_BY_PHASE = {
    GamePhase.INITIALIZED: SessionStatus.YOUR_TURN,
    GamePhase.READY: SessionStatus.YOUR_TURN,
    GamePhase.PLAYER_SELECTING: SessionStatus.YOUR_TURN,
    GamePhase.JUDGING: SessionStatus.JUDGING,
    GamePhase.ROUND_RESULT: SessionStatus.ROUND_RESULT,
    GamePhase.GAME_OVER: SessionStatus.GAME_OVER,
}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        state = service.create_session(CreateSessionRequest())
        response = service.select_card(state.session_id, card_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    base_config: GameConfig = field(default_factory=GameConfig.default)

    def create_session(self, request: CreateSessionRequest) -> GameStateResponse:
        """
        Create a new game session.

        Raises:
            ConfigValidationError: if the requested settings are invalid
        """
        overrides = {
            key: value
            for key, value in (
                ("hand_size", request.hand_size),
                ("initial_coins", request.initial_coins),
            )
            if value is not None
        }
        config = self.base_config.with_overrides(**overrides)

        session = self.session_manager.create_session(config=config, seed=request.seed)
        return self.state_response(session.session_id, session.store.get_state())

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self.state_response(session_id, session.store.get_state())

    def select_card(self, session_id: str, card_id: str) -> SelectCardResponse | ErrorResponse:
        """
        Play a card for the human player.

        Rejections come back as ErrorResponse carrying the engine's code.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        result = session.game_loop.play(card_id)
        if not result.success:
            return ErrorResponse(
                error=result.error or "Selection rejected",
                error_code=ErrorCode(result.error_code.value),
                details={"phase": result.phase.value},
            )

        return SelectCardResponse(
            session_id=session_id,
            success=True,
            game_state=self.state_response(session_id, session.store.get_state()),
        )

    def reset(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        session.controller.reset()
        return self.state_response(session_id, session.store.get_state())

    def get_result(self, session_id: str) -> GameResultResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        state = session.store.get_state()
        result = state.game_over or session.controller.check_game_over()
        return GameResultResponse(
            session_id=session_id,
            is_over=result is not None,
            result=_game_over_info(result) if result else None,
        )

    def get_session(self, session_id: str) -> Session | None:
        return self.session_manager.get_session(session_id)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def state_response(self, session_id: str, state: GameState) -> GameStateResponse:
        """Convert a snapshot to its client view."""
        # Selections are private until the opponent has committed too
        revealed = state.phase in (GamePhase.JUDGING, GamePhase.ROUND_RESULT, GamePhase.GAME_OVER)

        return GameStateResponse(
            session_id=session_id,
            status=_STATUS_BY_PHASE[state.phase],
            phase=state.phase.value,
            current_round=state.current_round,
            players=[_player_info(p) for p in state.players],
            discard=[_card_info(c) for c in state.discard],
            last_result=state.last_result.value if state.last_result else None,
            selected_cards={
                pid: _card_info(c) for pid, c in state.selected_cards.items()
            } if revealed else {},
            game_over=_game_over_info(state.game_over) if state.game_over else None,
        )


def _card_info(card: Card) -> CardInfo:
    return CardInfo(card_id=card.card_id, kind=card.kind.value)


def _player_info(player: Player) -> PlayerInfo:
    return PlayerInfo(
        player_id=player.player_id,
        name=player.name,
        is_human=player.is_human,
        coins=player.coins,
        hand_count=player.hand_size,
        hand=[_card_info(c) for c in player.hand] if player.is_human else None,
    )


def _game_over_info(result: GameOverResult) -> GameOverInfo:
    return GameOverInfo(
        winner=result.winner,
        reason=result.reason.value,
        final_scores=dict(result.final_scores),
    )


def _session_not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"Session {session_id} not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
    )
