"""
Game Controller - The round state machine.

The controller is the only writer of the store. Every transition goes
through one of its commands:

    INITIALIZED --initialize()--> READY
    READY --select_card()--> JUDGING --(delay)--> ROUND_RESULT
    ROUND_RESULT --prepare_next_round()--> READY
    ROUND_RESULT --end_game()--> GAME_OVER (terminal)
    any --reset()--> READY

Design principles:
- Validate first: rejected commands return a CommandResult and leave the
  store untouched
- Whole snapshots: the judged round is computed from one read and
  written back in one set_state, so observers never see a torn board
- Token-guarded deferred work: the reveal runs after a delay and is
  dropped if the game was reset in the meantime
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from .state import Card, GamePhase, GameState, Player, RoundResult
from .result import CommandResult, ErrorCode, GameOverResult, GameOverReason, DRAW_WINNER
from .judge import judge_round
from .scheduler import ManualScheduler, ScheduledCall, Scheduler
from ..bots.policy import OpponentPolicy, RandomPolicy

if TYPE_CHECKING:
    from .store import GameStateStore
    from ..config import GameConfig

logger = logging.getLogger(__name__)


class CardIdGenerator:
    """
    Monotonic card id source, owned by one controller.

    Ids look like "card-1", "card-2", ...; reset() returns to the baseline.
    """

    def __init__(self, prefix: str = "card"):
        self.prefix = prefix
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"{self.prefix}-{self._counter}"

    def reset(self) -> None:
        self._counter = 0


@dataclass(frozen=True)
class RoundOutcome:
    """A judged round, ready to be committed."""
    result: RoundResult
    players: tuple[Player, ...]
    discard: tuple[Card, ...]
    loser_id: str | None = None


class GameController:
    """
    Orchestrates a game on top of a GameStateStore.

    Usage:
        store = GameStateStore(create_initial_state(config))
        controller = GameController(store, config, scheduler=scheduler)
        controller.initialize()

        result = controller.select_card("player-0", card)
        if not result.success:
            show_error(result.error_code)
    """

    def __init__(
        self,
        store: GameStateStore,
        config: GameConfig,
        policy: OpponentPolicy | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.store = store
        self.config = config
        self.policy = policy or RandomPolicy()
        self.scheduler = scheduler or ManualScheduler()
        self.card_ids = CardIdGenerator()
        self._pending_commit: ScheduledCall | None = None

    @property
    def phase(self) -> GamePhase:
        return self.store.get_state().phase

    @property
    def has_pending_commit(self) -> bool:
        """True while a judged round is waiting to be revealed."""
        return self._pending_commit is not None and not self._pending_commit.cancelled

    # =========================================================================
    # Commands
    # =========================================================================

    def initialize(self) -> None:
        """
        Deal fresh hands, restore coins and start round 1.

        Bumps the round token and cancels any reveal still pending.
        """
        if self._pending_commit is not None:
            self._pending_commit.cancel()
            self._pending_commit = None

        state = self.store.get_state()

        players = tuple(
            p.with_hand(self._deal_hand()).with_coins(self.config.initial_coins)
            for p in state.players
        )

        self.store.set_state(
            phase=GamePhase.READY,
            players=players,
            discard=(),
            current_round=1,
            last_result=None,
            selected_cards={},
            round_token=state.round_token + 1,
            game_over=None,
        )
        logger.info(
            "Game initialized: %d players, %d cards each, %d coins",
            len(players), self.config.hand_size, self.config.initial_coins,
        )

    def reset(self) -> None:
        """Start over with a freshly dealt game."""
        self.card_ids.reset()
        self.initialize()

    def select_card(self, player_id: str, card: Card) -> CommandResult:
        """Commit a card for this round. Only card.card_id is consulted."""
        return self.select_card_id(player_id, card.card_id)

    def select_card_id(self, player_id: str, card_id: str) -> CommandResult:
        """
        Commit the human player's card for this round, by card id.

        The opponent's card is chosen immediately; the judged outcome is
        revealed after config.round_result_delay.

        Returns CommandResult.ok(), or a failure with NOT_PLAYER_TURN,
        INVALID_PHASE or CARD_NOT_IN_HAND. Rejections change nothing.

        Raises:
            OpponentSelectionError: if the opponent cannot choose. Any error
                from the policy aborts the round back to READY first.
        """
        state = self.store.get_state()

        rejection = self._validate_selection(state, player_id, card_id)
        if rejection is not None:
            logger.debug("select_card rejected: %s (%s)", rejection.error_code, rejection.error)
            return rejection

        player = state.get_player(player_id)
        chosen = player.find_card(card_id)

        selected = dict(state.selected_cards)
        selected[player_id] = chosen
        self.store.set_state(selected_cards=selected)

        opponent = state.opponent_player
        try:
            decision = self.policy.decide(opponent.player_id, self.store)
        except Exception:
            logger.exception("Opponent %s could not choose; aborting round", opponent.player_id)
            self.store.set_state(phase=GamePhase.READY, selected_cards={})
            raise

        selected[opponent.player_id] = decision.card
        judging = self.store.set_state(phase=GamePhase.JUDGING, selected_cards=selected)
        logger.debug(
            "Round %d judging: %s plays %s, %s plays %s",
            judging.current_round,
            player_id, chosen.kind.value,
            opponent.player_id, decision.card.kind.value,
        )

        outcome = self._judge(judging, player_id, opponent.player_id)
        token = judging.round_token
        self._pending_commit = self.scheduler.call_later(
            self.config.round_result_delay,
            lambda: self._commit_round(token, outcome),
        )

        return CommandResult.ok()

    def prepare_next_round(self) -> CommandResult:
        """
        Clear selections and return to READY for the next round.

        Only valid after a round result has been revealed. Whether the game
        should end instead is the caller's decision (see check_game_over).
        """
        state = self.store.get_state()
        if state.phase != GamePhase.ROUND_RESULT:
            return CommandResult.failure(
                ErrorCode.INVALID_PHASE,
                f"Cannot start next round during {state.phase.value}",
            )

        self.store.set_state(
            phase=GamePhase.READY,
            selected_cards={},
            current_round=state.current_round + 1,
        )
        logger.debug("Round %d ready", state.current_round + 1)
        return CommandResult.ok()

    def end_game(self, result: GameOverResult | None = None) -> CommandResult:
        """
        Move a finished game to GAME_OVER and record how it ended.

        If result is omitted it is computed with check_game_over().
        """
        state = self.store.get_state()
        if state.phase != GamePhase.ROUND_RESULT:
            return CommandResult.failure(
                ErrorCode.INVALID_PHASE,
                f"Cannot end game during {state.phase.value}",
            )

        if result is None:
            result = self.check_game_over()
        if result is None:
            return CommandResult.failure(ErrorCode.GAME_NOT_OVER, "Game is not over")

        self.store.set_state(phase=GamePhase.GAME_OVER, game_over=result)
        logger.info("Game over: winner=%s reason=%s", result.winner, result.reason.value)
        return CommandResult.ok()

    def advance(self) -> GameOverResult | None:
        """
        Move on from a revealed round.

        Ends the game if it is over, otherwise prepares the next round.
        Returns the game-over result, or None if play continues.
        """
        state = self.store.get_state()
        if state.phase == GamePhase.GAME_OVER:
            return state.game_over
        if state.phase != GamePhase.ROUND_RESULT:
            return None

        result = self.check_game_over()
        if result is not None:
            self.end_game(result)
            return result

        self.prepare_next_round()
        return None

    # =========================================================================
    # Queries
    # =========================================================================

    def check_game_over(self) -> GameOverResult | None:
        """
        Determine whether the game has ended. Read-only.

        - A player at 0 coins loses (COINS_DEPLETED)
        - Otherwise, once every hand is empty, most coins wins and equal
          coins is a draw (HAND_EXHAUSTED)
        """
        state = self.store.get_state()
        if state.phase == GamePhase.INITIALIZED or not state.players:
            return None

        final_scores = {p.player_id: p.coins for p in state.players}

        if any(p.coins == 0 for p in state.players):
            remaining = [p for p in state.players if p.coins > 0]
            winner = _leader(remaining) if remaining else DRAW_WINNER
            return GameOverResult(
                winner=winner,
                reason=GameOverReason.COINS_DEPLETED,
                final_scores=final_scores,
            )

        if all(not p.hand for p in state.players):
            return GameOverResult(
                winner=_leader(list(state.players)),
                reason=GameOverReason.HAND_EXHAUSTED,
                final_scores=final_scores,
            )

        return None

    # =========================================================================
    # Internals
    # =========================================================================

    def _validate_selection(
        self, state: GameState, player_id: str, card_id: str
    ) -> CommandResult | None:
        """
        Validate a selection against the current state.

        Returns a failure result if invalid, None if valid.
        """
        player = state.get_player(player_id)
        if player is None:
            return CommandResult.failure(ErrorCode.NOT_PLAYER_TURN, f"Player {player_id} not found")

        if not player.is_human:
            return CommandResult.failure(
                ErrorCode.NOT_PLAYER_TURN,
                f"Player {player_id} is computer-controlled",
            )

        if state.phase != GamePhase.READY:
            return CommandResult.failure(
                ErrorCode.INVALID_PHASE,
                f"Cannot select a card during {state.phase.value}",
            )

        if player_id in state.selected_cards:
            return CommandResult.failure(
                ErrorCode.INVALID_PHASE,
                f"Player {player_id} already selected a card this round",
            )

        if not player.has_card(card_id):
            return CommandResult.failure(
                ErrorCode.CARD_NOT_IN_HAND,
                f"Card {card_id} not in hand",
            )

        return None

    def _deal_hand(self) -> tuple[Card, ...]:
        return tuple(
            Card(kind=kind, card_id=self.card_ids.next_id())
            for kind in self.config.card_types
            for _ in range(self.config.copies_per_kind)
        )

    def _judge(self, state: GameState, human_id: str, opponent_id: str) -> RoundOutcome:
        """Compute the full round outcome from a single JUDGING snapshot."""
        human_card = state.selected_cards[human_id]
        opponent_card = state.selected_cards[opponent_id]

        result = judge_round(human_card, opponent_card)
        loser_id = {
            RoundResult.PLAYER_WIN: opponent_id,
            RoundResult.COMPUTER_WIN: human_id,
        }.get(result)

        players = []
        for p in state.players:
            if p.player_id == loser_id:
                p = p.with_coins(p.coins - 1)
            played = state.selected_cards.get(p.player_id)
            if played is not None:
                p = p.without_card(played.card_id)
            players.append(p)

        return RoundOutcome(
            result=result,
            players=tuple(players),
            discard=state.discard + (human_card, opponent_card),
            loser_id=loser_id,
        )

    def _commit_round(self, token: int, outcome: RoundOutcome) -> None:
        """Reveal a judged round, unless the game moved on without it."""
        self._pending_commit = None
        state = self.store.get_state()
        if state.round_token != token or state.phase != GamePhase.JUDGING:
            logger.warning(
                "Dropping stale round commit (token %d, current %d, phase %s)",
                token, state.round_token, state.phase.value,
            )
            return

        self.store.set_state(
            phase=GamePhase.ROUND_RESULT,
            players=outcome.players,
            discard=outcome.discard,
            last_result=outcome.result,
        )
        logger.info(
            "Round %d result: %s (loser: %s)",
            state.current_round, outcome.result.value, outcome.loser_id or "none",
        )


def _leader(players: list[Player]) -> str:
    """Player id with strictly the most coins, or DRAW_WINNER on a tie."""
    top = max(p.coins for p in players)
    leaders = [p for p in players if p.coins == top]
    if len(leaders) == 1:
        return leaders[0].player_id
    return DRAW_WINNER
