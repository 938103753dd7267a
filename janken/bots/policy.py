"""
Opponent Policy - Interface for the computer player's card choice.

A policy reads the store, picks a card from the given player's hand and
returns it. It never writes to the store: choosing is not playing. The
controller decides what happens to the chosen card.

Precondition violations (unknown player, empty hand) raise. They mean the
controller asked for a choice it should never have asked for.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

if TYPE_CHECKING:
    from ..engine_core.state import Card, Player
    from ..engine_core.store import GameStateStore


class OpponentSelectionError(RuntimeError):
    """Base class for opponent selection precondition failures."""


class PlayerNotFoundError(OpponentSelectionError):

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class EmptyHandError(OpponentSelectionError):

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player {player_id} has no cards in hand")


@dataclass(frozen=True)
class OpponentDecision:
    """
    A card chosen by a policy.

    Contains the card plus how many options there were, for logging.
    """
    card: Card
    explanation: str = ""
    options: int = 0


class OpponentPolicy(ABC):
    """
    Abstract base class for opponent policies.

    Subclasses implement choose(); select_card() does the lookup and
    precondition checks so every policy fails the same way.
    """

    def select_card(self, player_id: str, store: GameStateStore) -> Card:
        """
        Select a card for a player from their current hand.

        Raises:
            PlayerNotFoundError: if no player has this id
            EmptyHandError: if the player holds no cards
        """
        return self.decide(player_id, store).card

    def decide(self, player_id: str, store: GameStateStore) -> OpponentDecision:
        """Like select_card(), but returns the full decision."""
        player = store.get_state().get_player(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)

        if not player.hand:
            raise EmptyHandError(player_id)

        return self.choose(player)

    @abstractmethod
    def choose(self, player: Player) -> OpponentDecision:
        """
        Pick a card from a non-empty hand.

        Args:
            player: Snapshot of the player to choose for

        Returns:
            OpponentDecision with the chosen card
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(OpponentPolicy):
    """
    Random policy - picks uniformly among the cards in hand.

    This is the only strategy the computer opponent plays.
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def choose(self, player: Player) -> OpponentDecision:
        card = self.rng.choice(player.hand)
        return OpponentDecision(
            card=card,
            explanation="Selected randomly",
            options=len(player.hand),
        )


class FirstCardPolicy(OpponentPolicy):
    """
    First-card policy - always plays the first card in hand.

    Used for deterministic testing.
    """

    def choose(self, player: Player) -> OpponentDecision:
        return OpponentDecision(
            card=player.hand[0],
            explanation="Selected first card",
            options=len(player.hand),
        )


def select_card(
    player_id: str,
    store: GameStateStore,
    rng: random.Random | None = None,
) -> Card:
    """Pick a card uniformly at random from a player's hand."""
    return RandomPolicy(rng=rng).select_card(player_id, store)
