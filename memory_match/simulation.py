# memory_match/simulation.py
# Automated player: plays one game to completion on the asyncio scheduler.

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import load_config, setup_logging
from .deck import DeckSnapshot
from .engine import MatchEngine, is_complete
from .scheduler import AsyncioScheduler

logger = logging.getLogger(__name__)


@dataclass
class Stats:
    taps: int = 0
    matches: int = 0
    mismatches: int = 0
    waits: int = 0
    elapsed_ms: float = 0.0


# ----- tiny helpers -----

async def timeout_ms(milliseconds: float) -> None:
    await asyncio.sleep(milliseconds / 1000.0)

def now_ms() -> float:
    return time.time() * 1000.0


class Player:
    """
    Picks cards at random. With `remember=True` it also keeps every face it
    has seen and plays a known pair as soon as it can.
    """

    def __init__(self, rng: random.Random, remember: bool = True):
        self.rng = rng
        self.remember = remember
        self.seen: Dict[int, str] = {}

    def observe(self, snapshot: DeckSnapshot) -> None:
        if not self.remember:
            return
        for i, card in enumerate(snapshot):
            if card.face_up:
                self.seen[i] = card.content

    def choose(self, snapshot: DeckSnapshot, selection: Optional[int]) -> int:
        hidden = [i for i, card in enumerate(snapshot) if not card.face_up]
        unknown = [i for i in hidden if i not in self.seen]

        if selection is None:
            by_content: Dict[str, List[int]] = {}
            for i in hidden:
                if i in self.seen:
                    by_content.setdefault(self.seen[i], []).append(i)
            for indices in by_content.values():
                if len(indices) == 2:
                    return indices[0]
        else:
            wanted = snapshot[selection].content
            for i in hidden:
                if self.seen.get(i) == wanted:
                    return i

        return self.rng.choice(unknown or hidden)


async def play_game(
    engine: MatchEngine,
    pairs: int,
    player: Player,
    think_ms: float = 1.0,
    max_taps: int = 10_000,
) -> Stats:
    stats = Stats()
    start = now_ms()
    unsubscribe = engine.subscribe(player.observe)
    try:
        snapshot = engine.new_game(pairs)
        while not is_complete(snapshot):
            if stats.taps >= max_taps:
                raise RuntimeError(f"no finish after {max_taps} taps")

            hidden = sum(1 for card in snapshot if not card.face_up)
            needed = 2 if engine.selection is None else 1
            if hidden < needed:
                # every remaining card is waiting on a timer
                stats.waits += 1
                await timeout_ms(think_ms)
                snapshot = engine.snapshot()
                continue

            selection = engine.selection
            index = player.choose(snapshot, selection)
            snapshot = engine.tap(index)
            stats.taps += 1

            if selection is not None:
                if snapshot[index].match_animating:
                    stats.matches += 1
                    logger.debug("pair found at %d/%d", selection, index)
                else:
                    stats.mismatches += 1

            await timeout_ms(think_ms)
            snapshot = engine.snapshot()
    finally:
        unsubscribe()

    stats.elapsed_ms = now_ms() - start
    return stats


async def simulation_main(pairs: int, seed: Optional[int], remember: bool, delay_scale: float) -> Stats:
    config = load_config()
    engine = MatchEngine(
        AsyncioScheduler(),
        match_delay=config.match_delay * delay_scale,
        mismatch_delay=config.mismatch_delay * delay_scale,
        pair_step=config.pair_step,
        rng=random.Random(seed),
    )
    player = Player(random.Random(seed), remember=remember)

    print("MEMORY MATCH - SIMULATION")
    print(f"{pairs} pairs, memory {'on' if remember else 'off'}, delays x{delay_scale}\n")

    stats = await play_game(engine, pairs, player)

    print("SIMULATION COMPLETE")
    print(f"Taps: {stats.taps}")
    print(f"Matches: {stats.matches}")
    print(f"Mismatches: {stats.mismatches}")
    print(f"Waited on timers: {stats.waits}")
    print(f"Elapsed: {stats.elapsed_ms:.0f}ms")
    return stats


def main(argv=None) -> None:
    config = load_config()
    ap = argparse.ArgumentParser(description="Let a random player finish one game")
    ap.add_argument("--pairs", type=int, default=config.pairs)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--no-memory", action="store_true", help="never remember seen cards")
    ap.add_argument("--delay-scale", type=float, default=0.01,
                    help="multiplier applied to the match/mismatch delays")
    a = ap.parse_args(argv)

    setup_logging(config.log_level)
    asyncio.run(simulation_main(a.pairs, a.seed, not a.no_memory, a.delay_scale))


if __name__ == "__main__":
    main()
