"""
Janken CLI - Command-line interface for the engine.

Usage:
    janken play [--coins N] [--seed S] [--fast]   Play in the terminal
    janken serve [--host H] [--port P]            Run the HTTP API
"""

import argparse
import logging
import sys
import time

from .config import ConfigValidationError, GameConfig
from .engine_core.scheduler import ManualScheduler
from .engine_core.state import GamePhase
from .engine_core.result import DRAW_WINNER
from .session import SessionManager


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Janken - Rock-Paper-Scissors Card Game",
        prog="janken",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play against the computer")
    play_parser.add_argument("--coins", type=int, default=None, help="Initial coins per player")
    play_parser.add_argument("--seed", type=int, default=None, help="Seed for the computer opponent")
    play_parser.add_argument("--fast", action="store_true", help="Skip presentation delays")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        cmd_play(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_play(args, input_fn=input, output_fn=print):
    """Play an interactive game in the terminal."""
    try:
        config = GameConfig.from_env()
        if args.coins is not None:
            config = config.with_overrides(initial_coins=args.coins)
    except ConfigValidationError as e:
        output_fn(f"Error: {e}")
        sys.exit(1)

    scheduler = ManualScheduler()
    manager = SessionManager()
    session = manager.create_session(config=config, seed=args.seed, scheduler=scheduler)
    loop = session.game_loop

    output_fn("Rock-Paper-Scissors! Lose a round, lose a coin.")

    while True:
        state = loop.state

        if state.phase == GamePhase.GAME_OVER:
            _print_game_over(state, output_fn)
            manager.end_session(session.session_id)
            return

        if state.phase != GamePhase.READY:
            _wait(scheduler, args.fast)
            continue

        _print_board(state, output_fn)
        human = state.human_player
        choice = input_fn(f"Pick a card [1-{len(human.hand)}], r to reset, q to quit: ").strip().lower()

        if choice == "q":
            manager.end_session(session.session_id, reason="quit")
            output_fn("Bye!")
            return
        if choice == "r":
            loop.reset()
            output_fn("New game dealt.")
            continue
        if not choice.isdigit() or not 1 <= int(choice) <= len(human.hand):
            output_fn("Invalid choice.")
            continue

        result = loop.play(human.hand[int(choice) - 1].card_id)
        if not result.success:
            output_fn(f"Rejected: {result.error}")
            continue
        for message in result.messages:
            output_fn(message)

        # Reveal the round
        _wait(scheduler, args.fast)
        revealed = loop.state
        if revealed.last_result is not None:
            output_fn(_RESULT_TEXT[revealed.last_result.value])


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("janken.api.app:app", host=args.host, port=args.port)


_RESULT_TEXT = {
    "PLAYER_WIN": "You win the round!",
    "COMPUTER_WIN": "The computer wins the round.",
    "DRAW": "Draw.",
}


def _wait(scheduler: ManualScheduler, fast: bool):
    """Let the next scheduled step happen, sleeping through it unless fast."""
    due = scheduler.next_due()
    if due is None:
        return
    if not fast:
        time.sleep(due - scheduler.now)
    scheduler.advance(due - scheduler.now)


def _print_board(state, output_fn):
    human = state.human_player
    opponent = state.opponent_player
    output_fn("")
    output_fn(f"Round {state.current_round}")
    output_fn(
        f"  You: {human.coins} coin(s) | Computer: {opponent.coins} coin(s), "
        f"{opponent.hand_size} card(s) | Played: {len(state.discard)}"
    )
    for i, card in enumerate(human.hand, start=1):
        output_fn(f"  [{i}] {card.kind.value}")


def _print_game_over(state, output_fn):
    result = state.game_over
    human = state.human_player
    if result.winner == DRAW_WINNER:
        headline = "It's a draw!"
    elif result.winner == human.player_id:
        headline = "You win the game!"
    else:
        headline = "You lose the game."

    reason = (
        "A player ran out of coins."
        if result.reason.value == "COINS_DEPLETED"
        else "All cards have been played."
    )
    output_fn("")
    output_fn(headline)
    output_fn(reason)
    for player_id, coins in result.final_scores.items():
        output_fn(f"  {player_id}: {coins} coin(s)")


if __name__ == "__main__":
    main()
