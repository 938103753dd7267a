"""
Janken - Rock-Paper-Scissors Card Game Engine

A phase-gated engine for a two-player rock-paper-scissors card game:
a human and a computer opponent each hold a fixed hand of cards and
play one per round until coins or cards run out.

The engine provides:
- An observable state store with read-only snapshots
- A controller that owns round progression, judgment and scoring
- Opponent policies for the computer player
- Ephemeral sessions, a REST API and a terminal CLI
"""

__version__ = "0.1.0"
