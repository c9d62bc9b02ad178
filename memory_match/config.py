# memory_match/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .deck import ConfigurationError
from .engine import MATCH_DELAY, MISMATCH_DELAY, PAIR_STEP

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class GameConfig:
    pairs: int = 6
    pair_step: int = PAIR_STEP
    match_delay: float = MATCH_DELAY
    mismatch_delay: float = MISMATCH_DELAY
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"
    server_url: str = "http://127.0.0.1:5000"


def _get(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name}={raw!r} is not a valid {cast.__name__}") from None


def load_config(environ: Optional[Mapping[str, str]] = None) -> GameConfig:
    """Read MEMORY_MATCH_* environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    defaults = GameConfig()

    cfg = GameConfig(
        pairs=_get(env, "MEMORY_MATCH_PAIRS", int, defaults.pairs),
        pair_step=_get(env, "MEMORY_MATCH_PAIR_STEP", int, defaults.pair_step),
        match_delay=_get(env, "MEMORY_MATCH_MATCH_DELAY", float, defaults.match_delay),
        mismatch_delay=_get(env, "MEMORY_MATCH_MISMATCH_DELAY", float, defaults.mismatch_delay),
        host=_get(env, "MEMORY_MATCH_HOST", str, defaults.host),
        port=_get(env, "MEMORY_MATCH_PORT", int, defaults.port),
        log_level=_get(env, "MEMORY_MATCH_LOG_LEVEL", str, defaults.log_level).upper(),
        server_url=_get(env, "MEMORY_MATCH_URL", str, defaults.server_url).rstrip("/"),
    )

    if cfg.pairs < 1 or cfg.pair_step < 1:
        raise ConfigurationError("pair settings must be positive")
    if cfg.match_delay <= 0 or cfg.mismatch_delay <= 0:
        raise ConfigurationError("delays must be positive")
    if not 0 < cfg.port < 65536:
        raise ConfigurationError(f"port out of range: {cfg.port}")
    if not isinstance(logging.getLevelName(cfg.log_level), int):
        raise ConfigurationError(f"unknown log level: {cfg.log_level}")
    return cfg


def setup_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
