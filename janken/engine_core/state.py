"""
Game State - Immutable records for cards, players and the table.

Design principles:
- Immutable: every record is a frozen dataclass, collections are tuples
  or read-only mappings, so a snapshot can be retained safely
- Identity by id: cards compare and hash by card_id, never by kind
- All changes produce new records; the store swaps snapshots wholesale
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..config import GameConfig
    from .result import GameOverResult


class CardKind(str, Enum):
    """The three card kinds."""
    ROCK = "ROCK"
    PAPER = "PAPER"
    SCISSORS = "SCISSORS"


class GamePhase(str, Enum):
    """Round progression phases."""
    INITIALIZED = "INITIALIZED"
    READY = "READY"
    PLAYER_SELECTING = "PLAYER_SELECTING"  # Declared, never entered
    JUDGING = "JUDGING"
    ROUND_RESULT = "ROUND_RESULT"
    GAME_OVER = "GAME_OVER"


class RoundResult(str, Enum):
    """Outcome of a single round, from the first card's point of view."""
    PLAYER_WIN = "PLAYER_WIN"
    COMPUTER_WIN = "COMPUTER_WIN"
    DRAW = "DRAW"


@dataclass(frozen=True)
class Card:
    """
    A card instance.

    Two cards of the same kind are different cards; only card_id
    takes part in equality and hashing.
    """
    kind: CardKind
    card_id: str

    def __hash__(self):
        return hash(self.card_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.card_id == other.card_id


@dataclass(frozen=True)
class Player:
    """State for a single player."""
    player_id: str
    name: str
    hand: tuple[Card, ...] = ()
    coins: int = 0
    is_human: bool = False

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    def has_card(self, card_id: str) -> bool:
        """Check hand membership by card id."""
        return any(c.card_id == card_id for c in self.hand)

    def find_card(self, card_id: str) -> Card | None:
        for c in self.hand:
            if c.card_id == card_id:
                return c
        return None

    def without_card(self, card_id: str) -> Player:
        """Return new player with the card removed from hand."""
        return replace(self, hand=tuple(c for c in self.hand if c.card_id != card_id))

    def with_hand(self, hand: tuple[Card, ...]) -> Player:
        return replace(self, hand=tuple(hand))

    def with_coins(self, coins: int) -> Player:
        """Return new player with coins set, clamped at zero."""
        return replace(self, coins=max(0, coins))


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    This is the value the store hands out. It is never mutated;
    the controller builds a new one for every transition.
    """
    phase: GamePhase = GamePhase.INITIALIZED
    players: tuple[Player, ...] = ()
    discard: tuple[Card, ...] = ()  # Play order
    current_round: int = 0
    last_result: RoundResult | None = None
    selected_cards: Mapping[str, Card] = field(default_factory=dict)

    # Bumped on initialize/reset; deferred work from an older token is dropped
    round_token: int = 0

    game_over: GameOverResult | None = None

    def __post_init__(self):
        # Freeze collections so callers can't reach back into the store
        object.__setattr__(self, "players", tuple(self.players))
        object.__setattr__(self, "discard", tuple(self.discard))
        object.__setattr__(
            self, "selected_cards", MappingProxyType(dict(self.selected_cards))
        )

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def human_player(self) -> Player | None:
        for p in self.players:
            if p.is_human:
                return p
        return None

    @property
    def opponent_player(self) -> Player | None:
        """The first non-human player."""
        for p in self.players:
            if not p.is_human:
                return p
        return None

    @property
    def total_cards(self) -> int:
        """Cards in all hands plus the discard pile."""
        return sum(p.hand_size for p in self.players) + len(self.discard)

    @property
    def total_coins(self) -> int:
        return sum(p.coins for p in self.players)

    def get_player(self, player_id: str) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player."""
        return self.replace(players=tuple(
            player if p.player_id == player.player_id else p
            for p in self.players
        ))

    def replace(self, **changes: Any) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **changes)


def player_id_for(index: int) -> str:
    return f"player-{index}"


def create_initial_state(config: GameConfig) -> GameState:
    """
    Build the pre-game state: players seated, no cards dealt.

    Player 0 is the human; everyone else is a computer opponent.
    """
    players = tuple(
        Player(
            player_id=player_id_for(i),
            name="Player" if i == 0 else "Computer",
            hand=(),
            coins=config.initial_coins,
            is_human=i == 0,
        )
        for i in range(config.player_count)
    )
    return GameState(phase=GamePhase.INITIALIZED, players=players)
