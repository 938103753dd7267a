"""
API Module - HTTP interface for clients.

Exposes the engine via a REST API and a WebSocket:
1. Create a session (a freshly dealt game)
2. Read the game state
3. Play cards
4. Follow state updates as rounds are revealed

All state is session-scoped. No user accounts.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectCardRequest,
    # Responses
    GameStateResponse,
    SelectCardResponse,
    GameResultResponse,
    SessionListResponse,
    EndSessionResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    GameOverInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from .service import APIService

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SelectCardRequest",
    # Responses
    "GameStateResponse",
    "SelectCardResponse",
    "GameResultResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "PlayerInfo",
    "CardInfo",
    "GameOverInfo",
    # Enums
    "SessionStatus",
    "ErrorCode",
    # Service
    "APIService",
]
