# tests/test_server.py
import importlib
import random
import threading

import pytest
from memory_match import server
from memory_match.config import GameConfig
from memory_match.engine import MatchEngine
from memory_match.scheduler import ManualScheduler


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def client(clock):
    server.configure(GameConfig(pairs=3), clock, rng=random.Random(5))
    with server.app.test_client() as c:
        yield c
    server.configure(GameConfig())


def pair_of(cards, same=True):
    first = cards[0]
    for i, card in enumerate(cards[1:], start=1):
        if (card["content"] == first["content"]) == same:
            return 0, i


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_state_before_new_game(client):
    r = client.get("/state")
    assert r.status_code == 400
    assert r.get_json() == {"status": "error", "message": "game not created"}
    assert client.post("/tap", json={"index": 0}).status_code == 400
    assert client.post("/reset").status_code == 400


def test_new_game_shape(client):
    data = client.post("/new", json={}).get_json()
    assert data["status"] == "ok"
    assert data["generation"] == 1
    assert data["complete"] is False
    assert len(data["cards"]) == 6
    assert set(data["cards"][0]) == {"id", "content", "faceUp", "matched", "matchAnimating"}


def test_new_game_with_pairs(client):
    data = client.post("/new", json={"pairs": 6}).get_json()
    assert len(data["cards"]) == 12


@pytest.mark.parametrize("pairs", [4, 99, "x", None])
def test_new_game_bad_pairs(client, pairs):
    r = client.post("/new", json={"pairs": pairs})
    assert r.status_code == 400
    assert r.get_json()["status"] == "error"


def test_tap_match_then_timer(client, clock):
    cards = client.post("/new").get_json()["cards"]
    i, j = pair_of(cards)
    client.post("/tap", json={"index": i})
    data = client.post("/tap", json={"index": j}).get_json()
    assert data["cards"][j]["matchAnimating"] is True
    assert data["cards"][j]["matched"] is False

    clock.run_all()
    data = client.get("/state").get_json()
    assert data["cards"][i]["matched"] and data["cards"][j]["matched"]


def test_tap_mismatch_then_hidden(client, clock):
    cards = client.post("/new").get_json()["cards"]
    i, j = pair_of(cards, same=False)
    client.post("/tap", json={"index": i})
    data = client.post("/tap", json={"index": j}).get_json()
    assert data["cards"][i]["faceUp"] and data["cards"][j]["faceUp"]
    clock.run_all()
    data = client.get("/state").get_json()
    assert not data["cards"][i]["faceUp"] and not data["cards"][j]["faceUp"]


def test_complete_flag(client, clock):
    cards = client.post("/new").get_json()["cards"]
    by_content = {}
    for i, card in enumerate(cards):
        by_content.setdefault(card["content"], []).append(i)
    for i, j in by_content.values():
        client.post("/tap", json={"index": i})
        client.post("/tap", json={"index": j})
    clock.run_all()
    assert client.get("/state").get_json()["complete"] is True


@pytest.mark.parametrize("body", [{}, {"index": 6}, {"index": -1}, {"index": "a"}])
def test_tap_errors(client, body):
    client.post("/new")
    r = client.post("/tap", json=body)
    assert r.status_code == 400
    assert r.get_json()["status"] == "error"


def test_reset_bumps_generation(client):
    client.post("/new")
    data = client.post("/reset").get_json()
    assert data["generation"] == 2
    assert len(data["cards"]) == 6


@pytest.mark.parametrize("index", [1.9, True, "1", None, [1]])
def test_tap_index_must_be_an_integer(client, index):
    client.post("/new")
    r = client.post("/tap", json={"index": index})
    assert r.status_code == 400
    assert r.get_json() == {"status": "error", "message": "index must be an integer"}
    assert not any(card["faceUp"] for card in client.get("/state").get_json()["cards"])


@pytest.mark.parametrize("pairs", [6.0, False])
def test_new_game_pairs_must_be_an_integer(client, pairs):
    r = client.post("/new", json={"pairs": pairs})
    assert r.status_code == 400
    assert r.get_json()["message"] == "pairs must be an integer"


def test_engine_ready_at_import_and_shared_by_concurrent_requests():
    importlib.reload(server)
    try:
        engine = server.ENGINE
        assert isinstance(engine, MatchEngine)

        barrier = threading.Barrier(8)
        codes = []

        def worker():
            with server.app.test_client() as c:
                barrier.wait()
                codes.append(c.post("/new", json={"pairs": 3}).status_code)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        [t.start() for t in threads]
        [t.join() for t in threads]

        assert codes == [200] * 8
        assert server.ENGINE is engine
        assert engine.generation == 8
    finally:
        server.configure(GameConfig())
