from .deck import (
    TOKEN_POOL,
    Card,
    CardState,
    CardView,
    ConfigurationError,
    DeckSnapshot,
    build_deck,
)
from .engine import MatchEngine, is_complete
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, ThreadingScheduler

__all__ = [
    # deck
    "TOKEN_POOL",
    "Card",
    "CardState",
    "CardView",
    "ConfigurationError",
    "DeckSnapshot",
    "build_deck",
    # engine
    "MatchEngine",
    "is_complete",
    # scheduler
    "Scheduler",
    "ManualScheduler",
    "ThreadingScheduler",
    "AsyncioScheduler",
]
