"""
Bots module - Computer opponent implementations.

Provides:
- OpponentPolicy: Interface for choosing a card from a hand
- RandomPolicy: Uniform random choice (the shipped opponent)
- FirstCardPolicy: Deterministic choice for tests
"""

from .policy import (
    OpponentPolicy,
    OpponentDecision,
    RandomPolicy,
    FirstCardPolicy,
    OpponentSelectionError,
    PlayerNotFoundError,
    EmptyHandError,
    select_card,
)

__all__ = [
    "OpponentPolicy",
    "OpponentDecision",
    "RandomPolicy",
    "FirstCardPolicy",
    "OpponentSelectionError",
    "PlayerNotFoundError",
    "EmptyHandError",
    "select_card",
]
