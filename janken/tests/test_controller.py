"""
Tests for the game controller (round state machine).

Tests:
- Initialization and reset
- Card selection, rejections and the phase guard
- Judgment application after the reveal delay
- Game-over detection
- Stale deferred commits after a reset
"""

from collections import Counter
import logging

import pytest

from ..bots.policy import EmptyHandError, FirstCardPolicy, OpponentPolicy
from ..config import GameConfig
from ..engine_core.controller import CardIdGenerator, GameController
from ..engine_core.result import DRAW_WINNER, ErrorCode, GameOverReason
from ..engine_core.scheduler import ManualScheduler
from ..engine_core.state import Card, CardKind, GamePhase, RoundResult, create_initial_state
from ..engine_core.store import GameStateStore
from .conftest import COMPUTER, HUMAN, KindPolicy, first_of_kind


def human_of(controller):
    return controller.store.get_state().get_player(HUMAN)


def computer_of(controller):
    return controller.store.get_state().get_player(COMPUTER)


def play(controller, scheduler, kind):
    """Play the first card of a kind and wait for the reveal."""
    card = first_of_kind(human_of(controller), kind)
    result = controller.select_card(HUMAN, card)
    assert result.success
    scheduler.advance(controller.config.round_result_delay)
    return card


class TestInitialize:

    def test_phase_ready_round_one(self, controller):
        state = controller.store.get_state()
        assert state.phase == GamePhase.READY
        assert state.current_round == 1
        assert state.last_result is None
        assert state.game_over is None

    def test_each_player_gets_two_of_each_kind(self, controller):
        for player in controller.store.get_state().players:
            counts = Counter(c.kind for c in player.hand)
            assert counts == {CardKind.ROCK: 2, CardKind.PAPER: 2, CardKind.SCISSORS: 2}

    def test_coins_and_empty_piles(self, controller, config):
        state = controller.store.get_state()
        assert all(p.coins == config.initial_coins for p in state.players)
        assert state.discard == ()
        assert dict(state.selected_cards) == {}

    def test_card_ids_unique(self, controller):
        state = controller.store.get_state()
        ids = [c.card_id for p in state.players for c in p.hand]
        assert len(ids) == 12
        assert len(set(ids)) == 12

    def test_one_notification(self, store, config, scheduler):
        controller = GameController(store, config, scheduler=scheduler)
        seen = []
        store.subscribe(seen.append)

        controller.initialize()

        assert [s.phase for s in seen] == [GamePhase.READY]

    def test_custom_config(self, scheduler):
        config = GameConfig.create(initial_coins=5, hand_size=9)
        store = GameStateStore(create_initial_state(config))
        controller = GameController(store, config, scheduler=scheduler)

        controller.initialize()

        for player in store.get_state().players:
            assert player.coins == 5
            assert len(player.hand) == 9

    def test_independent_controllers_have_own_ids(self, config):
        """No process-wide counter: each controller starts from card-1."""
        stores = [GameStateStore(create_initial_state(config)) for _ in range(2)]
        for s in stores:
            GameController(s, config).initialize()

        first_ids = [s.get_state().players[0].hand[0].card_id for s in stores]
        assert first_ids == ["card-1", "card-1"]


class TestSelectCardRejections:

    def test_unknown_player(self, controller):
        before = controller.store.get_state()
        result = controller.select_card("player-9", Card(CardKind.ROCK, "card-1"))

        assert not result.success
        assert result.error_code == ErrorCode.NOT_PLAYER_TURN
        assert controller.store.get_state() is before

    def test_computer_cannot_select(self, controller):
        card = computer_of(controller).hand[0]
        result = controller.select_card(COMPUTER, card)

        assert result.error_code == ErrorCode.NOT_PLAYER_TURN

    def test_card_not_in_hand(self, controller):
        before = controller.store.get_state()
        seen = []
        controller.store.subscribe(seen.append)

        result = controller.select_card(HUMAN, Card(CardKind.ROCK, "invalid-card-id"))

        assert not result.success
        assert result.error_code == ErrorCode.CARD_NOT_IN_HAND
        assert controller.store.get_state() is before
        assert seen == []

    def test_opponents_card_not_in_hand(self, controller):
        """Membership is by id: another player's card is rejected."""
        card = computer_of(controller).hand[0]
        result = controller.select_card(HUMAN, card)
        assert result.error_code == ErrorCode.CARD_NOT_IN_HAND

    def test_membership_by_id_not_kind(self, controller):
        """A card id from the hand is accepted even if the kind given differs."""
        real = human_of(controller).hand[0]
        result = controller.select_card(HUMAN, Card(CardKind.SCISSORS, real.card_id))

        assert result.success
        assert controller.store.get_state().selected_cards[HUMAN].kind == real.kind

    def test_rejected_before_initialize(self, store, config):
        controller = GameController(store, config)
        result = controller.select_card(HUMAN, Card(CardKind.ROCK, "card-1"))
        assert result.error_code == ErrorCode.INVALID_PHASE

    def test_double_click_during_judging(self, controller, scheduler):
        hand = human_of(controller).hand
        assert controller.select_card(HUMAN, hand[0]).success
        before = controller.store.get_state()

        second = controller.select_card(HUMAN, hand[1])

        assert second.error_code == ErrorCode.INVALID_PHASE
        assert controller.store.get_state() is before
        assert scheduler.pending == 1

        scheduler.advance(1.5)
        assert len(controller.store.get_state().discard) == 2

    def test_rejected_during_round_result(self, controller, scheduler):
        hand = human_of(controller).hand
        controller.select_card(HUMAN, hand[0])
        scheduler.advance(1.5)

        result = controller.select_card(HUMAN, hand[1])

        assert result.error_code == ErrorCode.INVALID_PHASE
        assert controller.phase == GamePhase.ROUND_RESULT


class TestSelectCard:

    def test_three_transitions(self, controller, scheduler):
        seen = []
        controller.store.subscribe(seen.append)
        card = human_of(controller).hand[0]

        controller.select_card(HUMAN, card)
        scheduler.advance(1.5)

        assert len(seen) == 3
        recorded, judging, revealed = seen

        assert recorded.phase == GamePhase.READY
        assert list(recorded.selected_cards) == [HUMAN]
        assert recorded.selected_cards[HUMAN] == card

        assert judging.phase == GamePhase.JUDGING
        assert set(judging.selected_cards) == {HUMAN, COMPUTER}

        assert revealed.phase == GamePhase.ROUND_RESULT
        assert revealed.last_result in set(RoundResult)

    def test_board_unchanged_until_reveal(self, controller, scheduler):
        """Hands and discard only change in the reveal snapshot."""
        card = human_of(controller).hand[0]
        controller.select_card(HUMAN, card)

        state = controller.store.get_state()
        assert state.phase == GamePhase.JUDGING
        assert len(state.get_player(HUMAN).hand) == 6
        assert state.discard == ()

        scheduler.advance(1.4)
        assert controller.phase == GamePhase.JUDGING
        assert controller.has_pending_commit

        scheduler.advance(0.2)
        assert controller.phase == GamePhase.ROUND_RESULT
        assert not controller.has_pending_commit

    def test_cards_move_to_discard(self, controller, scheduler):
        card = human_of(controller).hand[0]
        controller.select_card(HUMAN, card)
        opponent_card = controller.store.get_state().selected_cards[COMPUTER]
        scheduler.advance(1.5)

        state = controller.store.get_state()
        assert state.discard == (card, opponent_card)
        assert len(state.get_player(HUMAN).hand) == 5
        assert len(state.get_player(COMPUTER).hand) == 5
        assert not state.get_player(HUMAN).has_card(card.card_id)
        assert not state.get_player(COMPUTER).has_card(opponent_card.card_id)
        assert state.total_cards == 12

    def test_player_win_example(self, scissors_controller, scheduler):
        """ROCK against a stubbed SCISSORS: player wins, opponent pays."""
        play(scissors_controller, scheduler, CardKind.ROCK)

        state = scissors_controller.store.get_state()
        assert state.last_result == RoundResult.PLAYER_WIN
        assert state.get_player(COMPUTER).coins == 2
        assert state.get_player(HUMAN).coins == 3
        assert len(state.discard) == 2
        assert len(state.get_player(HUMAN).hand) == 5

    def test_computer_win_charges_human(self, scissors_controller, scheduler):
        play(scissors_controller, scheduler, CardKind.PAPER)

        state = scissors_controller.store.get_state()
        assert state.last_result == RoundResult.COMPUTER_WIN
        assert state.get_player(HUMAN).coins == 2
        assert state.get_player(COMPUTER).coins == 3

    def test_draw_charges_nobody(self, scissors_controller, scheduler):
        play(scissors_controller, scheduler, CardKind.SCISSORS)

        state = scissors_controller.store.get_state()
        assert state.last_result == RoundResult.DRAW
        assert [p.coins for p in state.players] == [3, 3]

    def test_coins_clamped_at_zero(self, scissors_controller, scheduler):
        store = scissors_controller.store
        store.set_state(players=tuple(
            p.with_coins(0) if p.player_id == COMPUTER else p
            for p in store.get_state().players
        ))

        play(scissors_controller, scheduler, CardKind.ROCK)

        assert store.get_state().get_player(COMPUTER).coins == 0

    def test_opponent_failure_aborts_round(self, store, config, scheduler):
        class BrokenPolicy(OpponentPolicy):
            def choose(self, player):
                raise EmptyHandError(player.player_id)

        controller = GameController(store, config, policy=BrokenPolicy(), scheduler=scheduler)
        controller.initialize()
        card = human_of(controller).hand[0]

        with pytest.raises(EmptyHandError):
            controller.select_card(HUMAN, card)

        state = store.get_state()
        assert state.phase == GamePhase.READY
        assert dict(state.selected_cards) == {}
        assert len(state.get_player(HUMAN).hand) == 6
        assert scheduler.pending == 0

    def test_any_policy_error_aborts_round(self, store, config, scheduler):
        class CrashingPolicy(OpponentPolicy):
            def choose(self, player):
                raise KeyError("hand lookup failed")

        controller = GameController(store, config, policy=CrashingPolicy(), scheduler=scheduler)
        controller.initialize()

        with pytest.raises(KeyError):
            controller.select_card(HUMAN, human_of(controller).hand[0])

        state = store.get_state()
        assert state.phase == GamePhase.READY
        assert dict(state.selected_cards) == {}
        assert scheduler.pending == 0

        # The round can be played normally afterwards
        controller.policy = FirstCardPolicy()
        assert controller.select_card(HUMAN, human_of(controller).hand[0]).success

    def test_second_selection_from_listener_rejected(self, controller, scheduler):
        """A click delivered while the first selection is being recorded is refused."""
        hand = human_of(controller).hand
        nested = []

        def click_again(state):
            if state.phase == GamePhase.READY and HUMAN in state.selected_cards and not nested:
                nested.append(controller.select_card(HUMAN, hand[-1]))

        controller.store.subscribe(click_again)

        outer = controller.select_card(HUMAN, hand[0])

        assert outer.success
        assert nested[0].error_code == ErrorCode.INVALID_PHASE
        assert scheduler.pending == 1

        scheduler.advance(1.5)
        state = controller.store.get_state()
        assert state.selected_cards[HUMAN] == hand[0]
        assert state.discard[0] == hand[0]
        assert not state.get_player(HUMAN).has_card(hand[0].card_id)
        assert state.get_player(HUMAN).has_card(hand[-1].card_id)

    def test_select_by_card_id(self, controller):
        card = human_of(controller).hand[2]

        assert controller.select_card_id(HUMAN, card.card_id).success
        assert controller.store.get_state().selected_cards[HUMAN] == card
        assert controller.select_card_id(HUMAN, "card-99").error_code == ErrorCode.INVALID_PHASE


class TestNextRound:

    def test_prepare_next_round(self, controller, scheduler):
        play(controller, scheduler, CardKind.ROCK)

        result = controller.prepare_next_round()

        state = controller.store.get_state()
        assert result.success
        assert state.phase == GamePhase.READY
        assert dict(state.selected_cards) == {}
        assert state.current_round == 2
        assert state.last_result is not None

    def test_prepare_rejected_outside_round_result(self, controller):
        before = controller.store.get_state()

        result = controller.prepare_next_round()

        assert result.error_code == ErrorCode.INVALID_PHASE
        assert controller.store.get_state() is before

    def test_advance_continues_game(self, controller, scheduler):
        play(controller, scheduler, CardKind.ROCK)

        assert controller.advance() is None
        assert controller.phase == GamePhase.READY

    def test_full_game_never_creates_coins(self, controller, scheduler, config):
        initial_total = config.initial_coins * config.player_count

        for round_no in range(1, 7):
            state = controller.store.get_state()
            assert state.current_round == round_no
            card = state.get_player(HUMAN).hand[0]
            assert controller.select_card(HUMAN, card).success
            scheduler.advance(1.5)

            state = controller.store.get_state()
            assert state.total_coins <= initial_total
            assert all(p.coins >= 0 for p in state.players)
            assert state.total_cards == 12
            assert len(state.discard) == 2 * round_no
            controller.prepare_next_round()

        state = controller.store.get_state()
        assert all(not p.hand for p in state.players)
        assert len({c.card_id for c in state.discard}) == 12


class TestGameOver:

    def _set_coins(self, controller, human, computer):
        store = controller.store
        store.set_state(players=tuple(
            p.with_coins(human if p.is_human else computer)
            for p in store.get_state().players
        ))

    def _empty_hands(self, controller):
        store = controller.store
        store.set_state(players=tuple(p.with_hand(()) for p in store.get_state().players))

    def test_none_while_playing(self, controller):
        assert controller.check_game_over() is None

    def test_none_before_initialize(self, store, config):
        assert GameController(store, config).check_game_over() is None

    def test_human_out_of_coins(self, controller):
        self._set_coins(controller, human=0, computer=2)

        result = controller.check_game_over()

        assert result.winner == COMPUTER
        assert result.reason == GameOverReason.COINS_DEPLETED
        assert dict(result.final_scores) == {HUMAN: 0, COMPUTER: 2}

    def test_computer_out_of_coins(self, controller):
        self._set_coins(controller, human=1, computer=0)

        result = controller.check_game_over()

        assert result.winner == HUMAN
        assert result.reason == GameOverReason.COINS_DEPLETED

    def test_hands_exhausted_more_coins_wins(self, controller):
        self._set_coins(controller, human=1, computer=2)
        self._empty_hands(controller)

        result = controller.check_game_over()

        assert result.winner == COMPUTER
        assert result.reason == GameOverReason.HAND_EXHAUSTED

    def test_hands_exhausted_equal_coins_draw(self, controller):
        self._set_coins(controller, human=2, computer=2)
        self._empty_hands(controller)

        result = controller.check_game_over()

        assert result.winner == DRAW_WINNER
        assert result.is_draw
        assert result.reason == GameOverReason.HAND_EXHAUSTED

    def test_check_is_read_only(self, controller):
        before = controller.store.get_state()
        controller.check_game_over()
        assert controller.store.get_state() is before

    def test_end_game_is_terminal(self, scissors_controller, scheduler):
        controller = scissors_controller
        self._set_coins(controller, human=3, computer=1)
        play(controller, scheduler, CardKind.ROCK)

        assert controller.end_game().success
        state = controller.store.get_state()
        assert state.phase == GamePhase.GAME_OVER
        assert state.game_over.winner == HUMAN

        card = state.get_player(HUMAN).hand[0]
        assert controller.select_card(HUMAN, card).error_code == ErrorCode.INVALID_PHASE
        assert controller.prepare_next_round().error_code == ErrorCode.INVALID_PHASE
        assert controller.end_game().error_code == ErrorCode.INVALID_PHASE
        assert controller.store.get_state() is state
        assert controller.advance() == state.game_over

    def test_end_game_when_not_over(self, scissors_controller, scheduler):
        play(scissors_controller, scheduler, CardKind.ROCK)

        result = scissors_controller.end_game()

        assert result.error_code == ErrorCode.GAME_NOT_OVER
        assert scissors_controller.phase == GamePhase.ROUND_RESULT

    def test_advance_ends_game(self, scissors_controller, scheduler):
        self._set_coins(scissors_controller, human=1, computer=3)
        play(scissors_controller, scheduler, CardKind.PAPER)

        result = scissors_controller.advance()

        assert result.winner == COMPUTER
        assert scissors_controller.phase == GamePhase.GAME_OVER


class TestReset:

    def test_reset_restores_fresh_game(self, controller, scheduler, config):
        play(controller, scheduler, CardKind.ROCK)
        controller.prepare_next_round()
        play(controller, scheduler, CardKind.PAPER)

        controller.reset()

        state = controller.store.get_state()
        assert state.phase == GamePhase.READY
        assert state.current_round == 1
        assert state.discard == ()
        assert dict(state.selected_cards) == {}
        assert state.last_result is None
        for p in state.players:
            assert len(p.hand) == config.hand_size
            assert p.coins == config.initial_coins

    def test_reset_restarts_card_ids(self, controller):
        controller.initialize()
        assert controller.store.get_state().players[0].hand[0].card_id == "card-13"

        controller.reset()

        assert controller.store.get_state().players[0].hand[0].card_id == "card-1"

    def test_reset_from_game_over(self, scissors_controller, scheduler):
        store = scissors_controller.store
        store.set_state(players=tuple(
            p.with_coins(1 if p.is_human else 3) for p in store.get_state().players
        ))
        play(scissors_controller, scheduler, CardKind.PAPER)
        scissors_controller.end_game()

        scissors_controller.reset()

        assert scissors_controller.phase == GamePhase.READY
        assert store.get_state().game_over is None

    def test_stale_commit_dropped_after_reset(self, controller, scheduler):
        card = human_of(controller).hand[0]
        controller.select_card(HUMAN, card)

        controller.reset()
        assert not controller.has_pending_commit
        assert scheduler.pending == 0
        fresh = controller.store.get_state()
        scheduler.advance(1.5)

        state = controller.store.get_state()
        assert state is fresh
        assert state.phase == GamePhase.READY
        assert state.discard == ()
        assert all(len(p.hand) == 6 for p in state.players)

    def test_stale_commit_does_not_hit_next_round(self, store, config, scheduler):
        """A reveal from before a reset never lands on a round played after it."""
        controller = GameController(store, config, policy=FirstCardPolicy(), scheduler=scheduler)
        controller.initialize()
        controller.select_card(HUMAN, human_of(controller).hand[0])
        scheduler.advance(1.0)

        controller.reset()
        scheduler.advance(0.2)
        controller.select_card(HUMAN, human_of(controller).hand[-1])

        # Old reveal's due time passes first
        scheduler.advance(0.3)
        assert controller.phase == GamePhase.JUDGING

        scheduler.advance(2.0)
        state = store.get_state()
        assert state.phase == GamePhase.ROUND_RESULT
        assert len(state.discard) == 2
        assert state.discard[0].kind == CardKind.SCISSORS


    def test_commit_checks_round_token(self, controller, scheduler, caplog):
        controller.select_card(HUMAN, human_of(controller).hand[0])
        controller.store.set_state(round_token=controller.store.get_state().round_token + 1)

        with caplog.at_level(logging.WARNING, logger="janken.engine_core.controller"):
            scheduler.advance(1.5)

        state = controller.store.get_state()
        assert state.phase == GamePhase.JUDGING
        assert state.discard == ()
        assert "stale round commit" in caplog.text


class TestCardIdGenerator:

    def test_sequence_and_reset(self):
        ids = CardIdGenerator()
        assert [ids.next_id() for _ in range(3)] == ["card-1", "card-2", "card-3"]
        ids.reset()
        assert ids.next_id() == "card-1"

    def test_default_scheduler_is_manual(self, store, config):
        controller = GameController(store, config)
        assert isinstance(controller.scheduler, ManualScheduler)
