"""
Pytest fixtures for Janken tests.
"""

import pytest

from ..config import GameConfig
from ..engine_core.state import Card, CardKind, Player, create_initial_state
from ..engine_core.store import GameStateStore
from ..engine_core.controller import GameController
from ..engine_core.scheduler import ManualScheduler
from ..bots.policy import OpponentPolicy, OpponentDecision, RandomPolicy
from ..session import SessionManager


HUMAN = "player-0"
COMPUTER = "player-1"


class KindPolicy(OpponentPolicy):
    """Plays the first card of a given kind, falling back to the first card."""

    def __init__(self, kind: CardKind):
        self.kind = kind

    def choose(self, player: Player) -> OpponentDecision:
        for card in player.hand:
            if card.kind == self.kind:
                return OpponentDecision(card=card, explanation=f"Always {self.kind.value}")
        return OpponentDecision(card=player.hand[0], explanation="Fallback")


def first_of_kind(player: Player, kind: CardKind) -> Card:
    return next(c for c in player.hand if c.kind == kind)


@pytest.fixture
def config() -> GameConfig:
    """Default 2-player config: 6 cards, 3 coins, 1.5s reveal."""
    return GameConfig.default()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store(config: GameConfig) -> GameStateStore:
    """Store holding an undealt game."""
    return GameStateStore(create_initial_state(config))


@pytest.fixture
def controller(store, config, scheduler) -> GameController:
    """Initialized controller with a seeded random opponent."""
    controller = GameController(store, config, policy=RandomPolicy(seed=7), scheduler=scheduler)
    controller.initialize()
    return controller


@pytest.fixture
def scissors_controller(store, config, scheduler) -> GameController:
    """Initialized controller whose opponent plays SCISSORS while it can."""
    controller = GameController(
        store, config, policy=KindPolicy(CardKind.SCISSORS), scheduler=scheduler
    )
    controller.initialize()
    return controller


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()
