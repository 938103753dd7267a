"""
Game Loop - Drives a session from round to round.

The loop:
1. Human picks a card (play)
2. Controller judges and, after a delay, reveals the round
3. Loop sees ROUND_RESULT and checks for game over
4. Game over -> end_game; otherwise, after a pause, prepare_next_round
5. Repeat

The controller never advances on its own; this is the orchestration that
decides when to.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable
import logging

from ..engine_core.state import GamePhase, GameState, RoundResult
from ..engine_core.result import ErrorCode

if TYPE_CHECKING:
    from .manager import Session
    from ..engine_core.result import GameOverResult

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """
    Result of a human turn.

    Contains the command outcome plus where the game stands now.
    """
    success: bool
    phase: GamePhase

    error_code: ErrorCode | None = None
    error: str | None = None

    last_result: RoundResult | None = None
    winner: str | None = None

    messages: list[str] = field(default_factory=list)


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session)

        result = loop.play(card_id)
        if not result.success:
            reprompt(result.error_code)

        # Scheduler fires: round revealed, then next round prepared
    """

    def __init__(self, session: Session, auto_advance: bool = True):
        self.session = session
        self.auto_advance = auto_advance
        self._subscription = session.store.subscribe(self._on_state)

    @property
    def state(self) -> GameState:
        return self.session.store.get_state()

    @property
    def game_over(self) -> GameOverResult | None:
        return self.state.game_over

    def play(self, card_id: str) -> TurnResult:
        """Play a card from the human player's hand by id."""
        human = self.state.human_player
        result = self.session.controller.select_card_id(human.player_id, card_id)
        after = self.state
        if not result.success:
            return TurnResult(
                success=False,
                phase=after.phase,
                error_code=result.error_code,
                error=result.error,
            )

        card = after.selected_cards[human.player_id]
        opponent = after.opponent_player
        opponent_card = after.selected_cards.get(opponent.player_id)
        return TurnResult(
            success=True,
            phase=after.phase,
            messages=[
                f"{human.name} plays {card.kind.value}",
                f"{opponent.name} plays {opponent_card.kind.value}",
            ],
        )

    def reset(self) -> None:
        self.session.controller.reset()

    def close(self) -> None:
        """Stop following the store."""
        self._subscription.unsubscribe()

    def _on_state(self, state: GameState) -> None:
        if not self.auto_advance or state.phase != GamePhase.ROUND_RESULT:
            return

        result = self.session.controller.check_game_over()
        if result is not None:
            self._schedule(state, 0.0, lambda: self.session.controller.end_game(result))
        else:
            self._schedule(
                state,
                self.session.config.next_round_delay,
                self.session.controller.prepare_next_round,
            )

    def _schedule(self, seen: GameState, delay: float, action: Callable[[], Any]) -> None:
        """
        Run action later, if the game is still on the round that was seen.

        A reset or another transition in between makes it a no-op.
        """
        token, round_no = seen.round_token, seen.current_round

        def run():
            now = self.state
            if (
                now.round_token != token
                or now.current_round != round_no
                or now.phase != GamePhase.ROUND_RESULT
            ):
                logger.debug("Skipping stale advance for round %d", round_no)
                return
            action()

        self.session.scheduler.call_later(delay, run)
