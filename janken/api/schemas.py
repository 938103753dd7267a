"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- CARD_NOT_IN_HAND: Selected card is not in the player's hand
- NOT_PLAYER_TURN: Player unknown or not allowed to select
- INVALID_PHASE: Command not valid in the current phase
- GAME_NOT_OVER: Game-over requested while play continues
- VALIDATION_ERROR: Request or config values are invalid
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    YOUR_TURN = "your_turn"
    JUDGING = "judging"
    ROUND_RESULT = "round_result"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    NOT_PLAYER_TURN = "NOT_PLAYER_TURN"
    INVALID_PHASE = "INVALID_PHASE"
    GAME_NOT_OVER = "GAME_NOT_OVER"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A face-up card."""
    card_id: str
    kind: str = Field(description="ROCK, PAPER or SCISSORS")


class PlayerInfo(BaseModel):
    """
    Player information for display.

    hand is only filled in for the human player; the opponent's hand is
    reported as a count.
    """
    player_id: str
    name: str
    is_human: bool
    coins: int = Field(ge=0)
    hand_count: int = Field(0, ge=0)
    hand: Optional[list[CardInfo]] = None


class GameOverInfo(BaseModel):
    """How the game ended."""
    winner: str = Field(description="Winning player_id, or DRAW")
    reason: str = Field(description="COINS_DEPLETED or HAND_EXHAUSTED")
    final_scores: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request body for POST /sessions. Omitted fields use defaults."""
    initial_coins: Optional[int] = Field(None, gt=0)
    hand_size: Optional[int] = Field(None, gt=0)
    seed: Optional[int] = Field(None, description="Seed for the computer opponent")


class SelectCardRequest(BaseModel):
    """Request body for POST /sessions/{id}/select."""
    card_id: str = Field(min_length=1)


# =============================================================================
# Responses
# =============================================================================

class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    phase: str
    current_round: int
    players: list[PlayerInfo] = Field(default_factory=list)
    discard: list[CardInfo] = Field(default_factory=list)
    last_result: Optional[str] = None
    selected_cards: dict[str, CardInfo] = Field(
        default_factory=dict,
        description="Cards committed this round; empty until both are locked in",
    )
    game_over: Optional[GameOverInfo] = None


class SelectCardResponse(BaseModel):
    """Result of a card selection."""
    session_id: str
    success: bool = True
    game_state: GameStateResponse


class GameResultResponse(BaseModel):
    """Game-over check for a session."""
    session_id: str
    is_over: bool
    result: Optional[GameOverInfo] = None


class SessionListResponse(BaseModel):
    sessions: list[str] = Field(default_factory=list)
    count: int = 0


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
