# tests/test_simulation.py
import asyncio
import random

import pytest
from memory_match.engine import MatchEngine, is_complete
from memory_match.scheduler import AsyncioScheduler, ManualScheduler
from memory_match.simulation import Player, play_game


def run(pairs, remember, seed=1, think_ms=0.5):
    async def scenario():
        engine = MatchEngine(
            AsyncioScheduler(), match_delay=0.002, mismatch_delay=0.003, rng=random.Random(seed)
        )
        stats = await play_game(engine, pairs, Player(random.Random(seed), remember=remember), think_ms=think_ms)
        return engine, stats

    return asyncio.run(scenario())


@pytest.mark.parametrize("remember", [True, False])
def test_player_finishes_the_game(remember):
    engine, stats = run(3, remember)
    assert is_complete(engine.snapshot())
    assert stats.matches == 3
    assert stats.taps == 2 * (stats.matches + stats.mismatches)


def test_memory_player_bounds_mismatches():
    # with timers settled between turns every miss uncovers two unseen cards
    _, stats = run(6, True, seed=4, think_ms=10)
    assert stats.mismatches <= 6


def test_player_prefers_known_pair():
    player = Player(random.Random(0))
    engine = MatchEngine(ManualScheduler(), token_pool="AB", pair_step=1)
    snapshot = engine.new_game(2)
    a = [i for i, c in enumerate(snapshot) if c.content == "A"]
    player.seen = {a[0]: "A", a[1]: "A"}
    assert player.choose(snapshot, None) == a[0]
