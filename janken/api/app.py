"""
FastAPI Application - REST API for the card game.

Endpoints:
    POST   /api/v1/sessions                 Create game session
    GET    /api/v1/sessions                 List active sessions
    GET    /api/v1/sessions/{id}            Get game state
    DELETE /api/v1/sessions/{id}            End session
    POST   /api/v1/sessions/{id}/select     Play a card
    POST   /api/v1/sessions/{id}/reset      Deal a fresh game
    GET    /api/v1/sessions/{id}/result     Game-over check
    WS     /api/v1/sessions/{id}/ws         WebSocket for state updates

Round Flow:
    1. POST /select commits the human card; the response shows JUDGING
    2. After the reveal delay the state moves to ROUND_RESULT
    3. After a pause the next round starts (READY), or the game ends

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union
import asyncio
import json
import logging
import os

from .. import __version__

logger = logging.getLogger(__name__)

# Environment configuration
JANKEN_ENV = os.getenv("JANKEN_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, WebSocket, WebSocketDisconnect
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import APIService
    from .schemas import (
        CreateSessionRequest,
        SelectCardRequest,
        GameStateResponse,
        SelectCardResponse,
        GameResultResponse,
        SessionListResponse,
        EndSessionResponse,
        ErrorResponse,
        HealthResponse,
        ErrorCode,
    )
    from ..config import ConfigValidationError, GameConfig
    from ..engine_core.scheduler import AsyncioScheduler
    from ..session import SessionManager

    app = FastAPI(
        title="Janken Engine API",
        description="""
Rock-paper-scissors card game against a computer opponent.

## Round Flow

1. `POST /select` commits your card; the opponent replies at once
2. The round is revealed (`ROUND_RESULT`) after a short delay
3. The next round starts by itself, unless the game is over

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `CARD_NOT_IN_HAND` | Card is not in your hand |
| `NOT_PLAYER_TURN` | Player cannot select cards |
| `INVALID_PHASE` | A round is already in progress or the game is over |
| `VALIDATION_ERROR` | Invalid settings |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(
        session_manager=SessionManager(scheduler_factory=AsyncioScheduler),
        base_config=GameConfig.from_env(),
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_error(response: ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code == ErrorCode.SESSION_NOT_FOUND else 409
        return make_error_response(
            response.error_code,
            response.error,
            status_code=status_code,
            details=response.details,
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=GameStateResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid settings"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest = None) -> Union[GameStateResponse, JSONResponse]:
        """Create a session and deal the first game."""
        try:
            return api_service.create_session(body or CreateSessionRequest())
        except ConfigValidationError as e:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR,
                str(e),
                details={"errors": e.errors},
            )

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=SelectCardResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Selection rejected"},
        },
        tags=["Game"],
        summary="Play a card from your hand",
    )
    async def select_card(
        session_id: str,
        body: SelectCardRequest,
    ) -> Union[SelectCardResponse, JSONResponse]:
        """
        Commit a card for this round.

        Rejected selections leave the game unchanged.
        """
        response = api_service.select_card(session_id, body.card_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Deal a fresh game",
    )
    async def reset_game(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.reset(session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/result",
        response_model=GameResultResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Check whether the game is over",
    )
    async def get_result(session_id: str) -> Union[GameResultResponse, JSONResponse]:
        response = api_service.get_result(session_id)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Game state changed
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        session = api_service.get_session(session_id)
        if not session:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": f"Session {session_id} not found"},
            })
            await websocket.close()
            return

        updates: asyncio.Queue = asyncio.Queue()
        subscription = session.store.subscribe(updates.put_nowait)

        async def push_updates():
            while True:
                snapshot = await updates.get()
                await websocket.send_json({
                    "type": "state_update",
                    "payload": api_service.state_response(session_id, snapshot).model_dump(mode="json"),
                })

        pusher = asyncio.create_task(push_updates())
        try:
            # Send initial state
            updates.put_nowait(session.store.get_state())

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            logger.debug("WebSocket for session %s disconnected", session_id)
        finally:
            subscription.unsubscribe()
            pusher.cancel()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="janken-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Janken Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn janken.api.app:app
app = create_app()
