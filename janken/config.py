"""
Game Configuration - Static settings for a game.

Validates that:
1. Hand size is positive and splits evenly across card kinds
2. Initial coin count is positive
3. There are at least two players
4. Presentation delays are not negative

Configuration is validated once, when built. Invalid values raise
ConfigValidationError and no game may be constructed from them.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, fields, replace
from typing import Any
import os

from .engine_core.state import CardKind


DEFAULT_CARD_TYPES: tuple[CardKind, ...] = (
    CardKind.ROCK,
    CardKind.PAPER,
    CardKind.SCISSORS,
)


class ConfigValidationError(ValueError):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Config validation failed with {len(errors)} error(s): " + "; ".join(errors)
        )


@dataclass(frozen=True)
class GameConfig:
    """
    Immutable game settings.

    card_types is always the fixed three-kind set; it is not overridable.
    """
    hand_size: int = 6
    initial_coins: int = 3
    player_count: int = 2
    card_types: tuple[CardKind, ...] = DEFAULT_CARD_TYPES

    # Presentation timing (seconds)
    round_result_delay: float = 1.5
    next_round_delay: float = 3.0

    def __post_init__(self):
        errors = validate_config(asdict(self))
        if errors:
            raise ConfigValidationError(errors)

    @property
    def copies_per_kind(self) -> int:
        """How many cards of each kind a player is dealt."""
        return self.hand_size // len(self.card_types)

    @classmethod
    def default(cls) -> GameConfig:
        return _DEFAULT_CONFIG

    @classmethod
    def create(cls, **overrides: Any) -> GameConfig:
        """
        Build a validated config from defaults plus overrides.

        Raises:
            ConfigValidationError: if any override is unknown or out of range
        """
        return cls().with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> GameConfig:
        """Return a validated copy with some fields replaced."""
        errors = validate_config(overrides)
        if errors:
            raise ConfigValidationError(errors)

        overrides.pop("card_types", None)
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, prefix: str = "JANKEN_") -> GameConfig:
        """
        Build a config from environment variables.

        Reads {prefix}HAND_SIZE, {prefix}INITIAL_COINS, {prefix}PLAYER_COUNT,
        {prefix}ROUND_RESULT_DELAY and {prefix}NEXT_ROUND_DELAY. Unset
        variables fall back to the defaults.
        """
        overrides: dict[str, Any] = {}
        for name, cast in _ENV_FIELDS.items():
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is None or raw == "":
                continue
            try:
                overrides[name] = cast(raw)
            except ValueError:
                raise ConfigValidationError(
                    [f"{prefix}{name.upper()} must be a {cast.__name__}, got {raw!r}"]
                )
        return cls.create(**overrides)


_ENV_FIELDS = {
    "hand_size": int,
    "initial_coins": int,
    "player_count": int,
    "round_result_delay": float,
    "next_round_delay": float,
}


def validate_config(values: dict[str, Any]) -> list[str]:
    """
    Validate a partial config mapping.

    Only keys present are checked. Returns a list of error messages,
    empty when valid.
    """
    errors: list[str] = []
    known = {f.name for f in fields(GameConfig)}

    for key in values:
        if key not in known:
            errors.append(f"Unknown config field: {key}")

    kinds = len(DEFAULT_CARD_TYPES)

    hand_size = values.get("hand_size")
    if hand_size is not None:
        if not _is_int(hand_size) or hand_size <= 0:
            errors.append("hand_size must be greater than 0")
        elif hand_size % kinds != 0:
            errors.append(f"hand_size must be a multiple of {kinds}")

    initial_coins = values.get("initial_coins")
    if initial_coins is not None:
        if not _is_int(initial_coins) or initial_coins <= 0:
            errors.append("initial_coins must be greater than 0")

    player_count = values.get("player_count")
    if player_count is not None:
        if not _is_int(player_count) or player_count < 2:
            errors.append("player_count must be at least 2")

    for delay_field in ("round_result_delay", "next_round_delay"):
        delay = values.get(delay_field)
        if delay is not None:
            if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
                errors.append(f"{delay_field} must be a non-negative number")

    card_types = values.get("card_types")
    if card_types is not None and tuple(card_types) != DEFAULT_CARD_TYPES:
        errors.append("card_types is fixed to ROCK, PAPER, SCISSORS")

    return errors


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_DEFAULT_CONFIG = GameConfig()
