# memory_match/engine.py
from __future__ import annotations

import itertools
import logging
import random
from threading import RLock
from typing import Callable, Dict, List, Optional, Sequence

from .deck import (
    TOKEN_POOL,
    Card,
    CardState,
    ConfigurationError,
    DeckSnapshot,
    build_deck,
)
from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

MATCH_DELAY = 0.8
MISMATCH_DELAY = 1.0
PAIR_STEP = 3

Listener = Callable[[DeckSnapshot], None]


def is_complete(snapshot: DeckSnapshot) -> bool:
    """True once every card in a non-empty snapshot has been matched."""
    return bool(snapshot) and all(card.matched for card in snapshot)


class MatchEngine:
    """
    Turn-resolution state machine for one game at a time.

    Rep:
      - deck has even length; every content appears exactly twice
      - selection is None or the index of a REVEALED card
      - generation changes every time the deck is replaced
    Safety:
      - every mutation (taps, resets, timer callbacks) runs under one RLock,
        so timer threads and request handlers share a single timeline
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        token_pool: Sequence[str] = TOKEN_POOL,
        match_delay: float = MATCH_DELAY,
        mismatch_delay: float = MISMATCH_DELAY,
        pair_step: int = PAIR_STEP,
        rng: Optional[random.Random] = None,
    ):
        if match_delay <= 0 or mismatch_delay <= 0:
            raise ConfigurationError("delays must be positive")
        if pair_step < 1:
            raise ConfigurationError("pair step must be positive")

        self._scheduler = scheduler
        self._token_pool = tuple(token_pool)
        self.match_delay = match_delay
        self.mismatch_delay = mismatch_delay
        self.pair_step = pair_step
        self._rng = rng

        self._lock = RLock()
        self._cards: List[Card] = []
        self._selection: Optional[int] = None
        self._generation = 0
        self._pair_count: Optional[int] = None
        self._handles: Dict[int, Handle] = {}
        self._task_seq = itertools.count()
        self._listeners: List[Listener] = []

    # ----- read side -----

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def selection(self) -> Optional[int]:
        return self._selection

    @property
    def pair_count(self) -> Optional[int]:
        return self._pair_count

    @property
    def allowed_pair_counts(self) -> List[int]:
        return list(range(self.pair_step, len(self._token_pool) + 1, self.pair_step))

    def snapshot(self) -> DeckSnapshot:
        with self._lock:
            return tuple(card.view() for card in self._cards)

    @property
    def pending_transitions(self) -> int:
        """Delayed flips scheduled and not yet fired or cancelled."""
        with self._lock:
            return len(self._handles)

    def state_of(self, index: int) -> CardState:
        with self._lock:
            self._validate_index(index)
            return self._cards[index].state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ----- intents -----

    def new_game(self, pair_count: int) -> DeckSnapshot:
        if pair_count not in self.allowed_pair_counts:
            raise ConfigurationError(
                f"pair count must be one of {self.allowed_pair_counts}, got {pair_count}"
            )
        cards = build_deck(pair_count, self._token_pool, self._rng)

        with self._lock:
            for handle in self._handles.values():
                handle.cancel()
            self._handles = {}
            self._cards = cards
            self._selection = None
            self._generation += 1
            self._pair_count = pair_count
            logger.info("new game: %d pairs (generation %d)", pair_count, self._generation)
            return self._changed()

    def reset(self) -> DeckSnapshot:
        if self._pair_count is None:
            raise ConfigurationError("no game to reset; start one with new_game()")
        return self.new_game(self._pair_count)

    def tap(self, index: int) -> DeckSnapshot:
        with self._lock:
            self._validate_index(index)
            card = self._cards[index]

            if card.state is not CardState.HIDDEN:
                # redundant tap: revealed, pending or matched already
                return self.snapshot()

            card.face_up = True
            previous = self._selection

            if previous is None:
                self._selection = index
                logger.debug("tap %d: first of pair (%s)", index, card.content)
                return self._changed()

            self._selection = None
            first = self._cards[previous]
            if first.content == card.content:
                first.match_animating = True
                card.match_animating = True
                logger.debug("tap %d: matches %d (%s)", index, previous, card.content)
                self._schedule(self.match_delay, self._finalize_match, previous, index)
            else:
                logger.debug("tap %d: mismatch with %d", index, previous)
                self._schedule(self.mismatch_delay, self._hide_mismatch, previous, index)
            return self._changed()

    # ----- delayed transitions -----

    def _schedule(self, delay: float, action, first: int, second: int) -> None:
        generation = self._generation
        key = next(self._task_seq)

        def fire() -> None:
            with self._lock:
                self._handles.pop(key, None)
                if generation != self._generation:
                    logger.debug(
                        "dropping stale timer for (%d, %d): generation %d, live %d",
                        first, second, generation, self._generation,
                    )
                    return
                if action(first, second):
                    self._changed()

        self._handles[key] = self._scheduler.call_later(delay, fire)

    def _finalize_match(self, first: int, second: int) -> bool:
        changed = False
        for i in (first, second):
            card = self._cards[i]
            if card.state is CardState.MATCHED_PENDING:
                card.matched = True
                changed = True
        return changed

    def _hide_mismatch(self, first: int, second: int) -> bool:
        changed = False
        for i in (first, second):
            card = self._cards[i]
            if card.state is CardState.REVEALED:
                card.face_up = False
                changed = True
        return changed

    # ----- helpers -----

    def _changed(self) -> DeckSnapshot:
        self._check_rep()
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
        return snap

    def _validate_index(self, index: int) -> None:
        if not 0 <= index < len(self._cards):
            raise IndexError(f"card index {index} out of range for deck of {len(self._cards)}")

    def _check_rep(self) -> None:
        assert len(self._cards) % 2 == 0
        for card in self._cards:
            card.check_rep()
        if self._selection is not None:
            assert self._cards[self._selection].state is CardState.REVEALED
