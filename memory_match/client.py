# memory_match/client.py
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional

import requests

from .config import load_config

COLUMNS = 4
HIDDEN_FACE = "[ ]"
GONE_FACE = "   "


class ServerError(RuntimeError):
    """The server answered with {"status": "error"}."""


class GameClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        r = self.session.request(method, f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        try:
            data = r.json()
        except ValueError:
            r.raise_for_status()
            raise ServerError(f"unexpected non-JSON reply ({r.status_code})")
        if data.get("status") == "error":
            raise ServerError(data.get("message", "unknown error"))
        r.raise_for_status()
        return data

    def new_game(self, pairs: Optional[int] = None) -> Dict[str, Any]:
        return self._call("POST", "/new", {} if pairs is None else {"pairs": pairs})

    def tap(self, index: int) -> Dict[str, Any]:
        return self._call("POST", "/tap", {"index": index})

    def reset(self) -> Dict[str, Any]:
        return self._call("POST", "/reset")

    def state(self) -> Dict[str, Any]:
        return self._call("GET", "/state")


def card_face(card: Dict[str, Any]) -> str:
    if card["matched"]:
        return GONE_FACE
    if card["faceUp"]:
        return f" {card['content']} " if not card["matchAnimating"] else f"*{card['content']}*"
    return HIDDEN_FACE


def render(cards: List[Dict[str, Any]], columns: int = COLUMNS) -> str:
    """Text grid: index on the left of each face, `columns` cards per row."""
    lines = []
    for start in range(0, len(cards), columns):
        row = cards[start:start + columns]
        lines.append("  ".join(f"{start + i:>2} {card_face(c)}" for i, c in enumerate(row)))
    return "\n".join(lines)


def main(argv=None) -> int:
    config = load_config()
    ap = argparse.ArgumentParser(description="Play memory-match against a running server")
    ap.add_argument("--url", default=config.server_url)
    sub = ap.add_subparsers(dest="command", required=True)
    p_new = sub.add_parser("new", help="start a new game")
    p_new.add_argument("--pairs", type=int, default=None)
    p_tap = sub.add_parser("tap", help="tap a card")
    p_tap.add_argument("index", type=int)
    sub.add_parser("reset", help="reshuffle with the same pair count")
    sub.add_parser("state", help="show the board")
    a = ap.parse_args(argv)

    client = GameClient(a.url)
    try:
        if a.command == "new":
            data = client.new_game(a.pairs)
        elif a.command == "tap":
            data = client.tap(a.index)
        elif a.command == "reset":
            data = client.reset()
        else:
            data = client.state()
    except ServerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render(data["cards"]))
    if data.get("complete"):
        print("All pairs found!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
