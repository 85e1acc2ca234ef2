import pytest
from fastapi.testclient import TestClient

import api
from core import GameStatus
from storage import JsonFileBestScoreStore

from conftest import CHECKERBOARD_VALUES

START = [
    [0, 0, 0, 0],
    [2, 0, 0, 0],
    [0, 0, 0, 0],
    [2, 0, 0, 4],
]


@pytest.fixture
def client(controller):
    api.app.dependency_overrides[api.get_controller] = lambda: controller
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


@pytest.fixture
def wire_state(make_state):
    def _wire(values, **kwargs):
        return api.state_to_data(make_state(values, **kwargs)).model_dump(mode="json")
    return _wire


def grid_values(body):
    return [[cell["value"] if cell else 0 for cell in row] for row in body["grid"]]


def test_new_game(client, store):
    store.write(64)

    response = client.post("/game/new")

    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 0
    assert body["best_score"] == 64
    assert body["status"] == "playing"
    assert len(body["tiles"]) == 2
    assert all(tile["is_new"] for tile in body["tiles"])


def test_effective_move(client, wire_state):
    response = client.post("/game/move", json={"state": wire_state(START), "direction": "up"})

    assert response.status_code == 200
    body = response.json()
    assert body["move_was_effective"] is True
    assert body["score"] == 4
    assert grid_values(body)[0] == [4, 2, 0, 4]
    assert body["message"] is None
    merged = body["grid"][0][0]
    assert merged["merged_from"] == ["s1", "s2"]


def test_ineffective_move(client, wire_state):
    state = wire_state([[2, 4, 0, 0], [0] * 4, [0] * 4, [0] * 4])

    body = client.post("/game/move", json={"state": state, "direction": "left"}).json()

    assert body["move_was_effective"] is False
    assert "not effective" in body["message"]
    assert body["grid"] == state["grid"]


def test_move_after_game_over_is_rejected(client, wire_state):
    state = wire_state(CHECKERBOARD_VALUES, status=GameStatus.LOST)

    body = client.post("/game/move", json={"state": state, "direction": "left"}).json()

    assert body["move_was_effective"] is False
    assert body["status"] == "lost"
    assert "ended" in body["message"]


def test_winning_move_reports_win(client, wire_state):
    state = wire_state([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    body = client.post("/game/move", json={"state": state, "direction": "left"}).json()
    assert body["status"] == "won"
    assert body["message"] == "Congratulations! You won!"


def test_unknown_direction_is_unprocessable(client, wire_state):
    response = client.post("/game/move", json={"state": wire_state(START), "direction": "sideways"})
    assert response.status_code == 422


def test_wrong_grid_size_is_rejected(client, wire_state):
    state = wire_state([[2, 0, 0], [0, 0, 0], [0, 0, 0]])
    response = client.post("/game/move", json={"state": state, "direction": "left"})
    assert response.status_code == 400


def test_misplaced_tile_is_rejected(client, wire_state):
    state = wire_state(START)
    state["grid"][1][0]["position"] = [2, 2]
    response = client.post("/game/move", json={"state": state, "direction": "left"})
    assert response.status_code == 400
    assert "position" in response.json()["detail"]


def test_duplicate_tile_id_is_rejected(client, wire_state):
    state = wire_state(START)
    state["grid"][3][0]["id"] = state["grid"][1][0]["id"]
    response = client.post("/game/revive", json={"state": state})
    assert response.status_code == 400


def test_non_power_of_two_is_rejected(client, wire_state):
    state = wire_state(START)
    state["grid"][3][3]["value"] = 6
    response = client.post("/game/continue", json={"state": state})
    assert response.status_code == 400


def test_revive(client, wire_state):
    state = wire_state([[2, 4, 8, 16], [32, 0, 0, 0], [0] * 4, [0] * 4],
                       score=300, best_score=300, status=GameStatus.LOST)

    body = client.post("/game/revive", json={"state": state}).json()

    assert body["status"] == "playing"
    assert sorted(tile["value"] for tile in body["tiles"]) == [16, 32]
    assert body["score"] == 300


def test_continue(client, wire_state):
    state = wire_state([[2048, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4], status=GameStatus.WON)

    body = client.post("/game/continue", json={"state": state}).json()

    assert body["status"] == "playing"
    assert body["keep_playing"] is True


def test_restart_keeps_best_score(client, wire_state):
    state = wire_state(START, score=40, best_score=80)

    body = client.post("/game/restart", json={"state": state}).json()

    assert body["score"] == 0
    assert body["best_score"] == 80
    assert len(body["tiles"]) == 2


def test_state_round_trips_through_wire_model(make_state):
    state = make_state(START, score=8, best_score=16)
    assert api.state_from_data(api.state_to_data(state)) == state


def test_default_controller_uses_file_store():
    assert isinstance(api.get_controller().store, JsonFileBestScoreStore)
