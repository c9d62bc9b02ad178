# memory_match/deck.py
from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

# first eight are the classic 4x4 set
TOKEN_POOL: Tuple[str, ...] = (
    "🐶", "🐱", "🐭", "🐹", "🦊", "🐻", "🐼", "🐨",
    "🦁", "🐷", "🐸", "🐵",
)


class ConfigurationError(ValueError):
    """Pair count or token pool cannot produce a valid deck."""


class CardState(enum.Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED_PENDING = "matched_pending"
    MATCHED_FINAL = "matched_final"


@dataclass(frozen=True)
class CardView:
    """Read-only view of one card, as handed to the presentation layer."""

    id: int
    content: str
    face_up: bool = False
    matched: bool = False
    match_animating: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "content": self.content,
            "faceUp": self.face_up,
            "matched": self.matched,
            "matchAnimating": self.match_animating,
        }


DeckSnapshot = Tuple[CardView, ...]


@dataclass
class Card:
    """
    Mutable card owned by the engine.

    Rep:
      - matched => face_up
      - match_animating => face_up
    """

    id: int
    content: str
    face_up: bool = False
    matched: bool = False
    match_animating: bool = False

    @property
    def state(self) -> CardState:
        if self.matched:
            return CardState.MATCHED_FINAL
        if self.match_animating:
            return CardState.MATCHED_PENDING
        if self.face_up:
            return CardState.REVEALED
        return CardState.HIDDEN

    def view(self) -> CardView:
        return CardView(
            id=self.id,
            content=self.content,
            face_up=self.face_up,
            matched=self.matched,
            match_animating=self.match_animating,
        )

    def check_rep(self) -> None:
        if self.matched or self.match_animating:
            assert self.face_up is True


def build_deck(
    pair_count: int,
    token_pool: Sequence[str] = TOKEN_POOL,
    rng: Optional[random.Random] = None,
) -> List[Card]:
    """
    Take the first `pair_count` tokens of the pool, lay down two of each and
    shuffle. Every card starts face down.
    """
    if len(set(token_pool)) != len(token_pool):
        raise ConfigurationError("token pool must not contain duplicates")
    if pair_count < 1:
        raise ConfigurationError(f"pair count must be positive, got {pair_count}")
    if pair_count > len(token_pool):
        raise ConfigurationError(
            f"pair count {pair_count} exceeds token pool size {len(token_pool)}"
        )

    tokens = list(token_pool[:pair_count])
    contents = tokens + tokens
    (rng or random).shuffle(contents)

    return [Card(id=i, content=content) for i, content in enumerate(contents)]
