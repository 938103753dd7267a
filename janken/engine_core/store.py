"""
State Store - The single source of truth for a game.

The store:
- Holds exactly one GameState snapshot
- Replaces it on set_state (shallow merge of the named fields)
- Synchronously notifies subscribers, in registration order
- Delivers updates made by a listener only after the current round of
  notifications finishes

Snapshots are frozen, so anything returned by get_state() or passed to
a listener stays valid after later updates.
"""

from __future__ import annotations
from collections import deque
from dataclasses import fields
from typing import Any, Callable
import logging

from .state import GameState

logger = logging.getLogger(__name__)

Listener = Callable[[GameState], None]

_STATE_FIELDS = frozenset(f.name for f in fields(GameState))


class Subscription:
    """
    Handle returned by GameStateStore.subscribe().

    Calling it (or unsubscribe()) removes exactly this registration.
    Removing twice is harmless.
    """

    def __init__(self, store: GameStateStore, listener: Listener):
        self._store = store
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._store._remove(self)

    def __call__(self) -> None:
        self.unsubscribe()


class GameStateStore:
    """
    Observable container for GameState.

    Usage:
        store = GameStateStore(create_initial_state(config))
        sub = store.subscribe(render)
        store.set_state(phase=GamePhase.READY)
        sub.unsubscribe()
    """

    def __init__(self, initial_state: GameState | None = None):
        self._state = initial_state if initial_state is not None else GameState()
        self._subscriptions: list[Subscription] = []
        self._queue: deque[GameState] = deque()
        self._notifying = False

    def get_state(self) -> GameState:
        """Get the current snapshot."""
        return self._state

    def set_state(self, **changes: Any) -> GameState:
        """
        Merge the given fields into a new snapshot and notify subscribers.

        Fields not named keep their prior values.

        Raises:
            TypeError: if a field name is not part of GameState
        """
        unknown = set(changes) - _STATE_FIELDS
        if unknown:
            raise TypeError(f"Unknown GameState field(s): {', '.join(sorted(unknown))}")

        self._state = self._state.replace(**changes)
        self._queue.append(self._state)

        # set_state from inside a listener queues; the outer call delivers it
        if not self._notifying:
            self._notifying = True
            try:
                while self._queue:
                    self._notify(self._queue.popleft())
            finally:
                self._notifying = False

        return self._state

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener for every subsequent snapshot."""
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        self._subscriptions = [s for s in self._subscriptions if s is not subscription]

    def _notify(self, snapshot: GameState) -> None:
        # Iterate over a copy: listeners may (un)subscribe while being notified
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.listener(snapshot)
            except Exception:
                logger.exception("State listener %r failed", subscription.listener)
