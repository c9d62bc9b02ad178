# memory_match/server.py
from __future__ import annotations

import argparse
import logging
import random
from dataclasses import replace
from typing import Optional

from flask import Flask, jsonify, request

from .config import GameConfig, load_config, setup_logging
from .deck import DeckSnapshot
from .engine import MatchEngine, is_complete
from .scheduler import Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

app = Flask(__name__)

# A single in-memory game; timers run on ThreadingScheduler threads and the
# engine serializes them with the request handlers.
CONFIG: GameConfig = GameConfig()
ENGINE: MatchEngine


def configure(
    config: GameConfig,
    scheduler: Optional[Scheduler] = None,
    rng: Optional[random.Random] = None,
) -> MatchEngine:
    """Replace the served engine. Tests pass a ManualScheduler here."""
    global CONFIG, ENGINE
    CONFIG = config
    ENGINE = MatchEngine(
        scheduler or ThreadingScheduler(),
        match_delay=config.match_delay,
        mismatch_delay=config.mismatch_delay,
        pair_step=config.pair_step,
        rng=rng,
    )
    return ENGINE


configure(CONFIG)


def _as_int(value) -> Optional[int]:
    # JSON true/false and floats do not count as integers
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _deck_response(engine: MatchEngine, snapshot: DeckSnapshot):
    return jsonify({
        "status": "ok",
        "generation": engine.generation,
        "complete": is_complete(snapshot),
        "cards": [card.to_dict() for card in snapshot],
    })


def _error(message: str, code: int = 400):
    return jsonify({"status": "error", "message": message}), code


def _no_game():
    return _error("game not created")


@app.get("/health")
def api_health():
    return jsonify({"status": "ok"})


@app.post("/new")
def api_new():
    engine = ENGINE
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    pairs = _as_int(data.get("pairs", CONFIG.pairs))
    if pairs is None:
        return _error("pairs must be an integer")
    try:
        snapshot = engine.new_game(pairs)
    except ValueError as e:
        return _error(str(e))
    return _deck_response(engine, snapshot)


@app.post("/tap")
def api_tap():
    engine = ENGINE
    if engine.pair_count is None:
        return _no_game()

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "index" not in data:
        return _error("missing field: index")
    index = _as_int(data["index"])
    if index is None:
        return _error("index must be an integer")
    try:
        snapshot = engine.tap(index)
    except IndexError as e:
        return _error(str(e))
    return _deck_response(engine, snapshot)


@app.post("/reset")
def api_reset():
    engine = ENGINE
    if engine.pair_count is None:
        return _no_game()
    return _deck_response(engine, engine.reset())


@app.get("/state")
def api_state():
    engine = ENGINE
    if engine.pair_count is None:
        return _no_game()
    return _deck_response(engine, engine.snapshot())


def main(argv=None) -> None:
    config = load_config()
    ap = argparse.ArgumentParser(description="Serve one memory-match game over HTTP")
    ap.add_argument("--host", default=config.host)
    ap.add_argument("--port", type=int, default=config.port)
    ap.add_argument("--pairs", type=int, default=config.pairs)
    ap.add_argument("--debug", action="store_true")
    a = ap.parse_args(argv)

    config = replace(config, pairs=a.pairs, host=a.host, port=a.port)
    setup_logging(config.log_level)
    configure(config)
    logger.info("serving on %s:%d", config.host, config.port)
    # debug=True only for development
    app.run(host=config.host, port=config.port, debug=a.debug, use_reloader=False)


if __name__ == "__main__":
    main()
