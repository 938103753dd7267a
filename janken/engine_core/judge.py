"""
Judge - Decides the outcome of a round.

Pure function of the two card kinds. The caller fixes the argument
order: the human's card first, the opponent's second.
"""

from __future__ import annotations

from .state import Card, CardKind, RoundResult


# kind -> the kind it beats
BEATS: dict[CardKind, CardKind] = {
    CardKind.ROCK: CardKind.SCISSORS,
    CardKind.SCISSORS: CardKind.PAPER,
    CardKind.PAPER: CardKind.ROCK,
}


def beats(kind: CardKind, other: CardKind) -> bool:
    return BEATS[kind] == other


def judge_round(card1: Card, card2: Card) -> RoundResult:
    """
    Judge card1 against card2.

    Equal kinds draw. Otherwise the first card wins if its kind beats
    the second's, and loses in every other case.
    """
    if card1.kind == card2.kind:
        return RoundResult.DRAW

    if beats(card1.kind, card2.kind):
        return RoundResult.PLAYER_WIN

    return RoundResult.COMPUTER_WIN
