# tests/test_missions.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session


def _lobby(client: TestClient, guest_names=("B", "C", "D")):
    """司会 + ゲストでロビーを作るヘルパー"""
    created = client.post(
        "/api/games/create", json={"mode": "online", "hostName": "A"}
    ).json()
    players = [created["player"]]
    for name in guest_names:
        res = client.post(
            "/api/games/join",
            json={"roomCode": created["roomCode"], "playerName": name},
        )
        assert res.status_code == 200
        players.append(res.json()["player"])
    return created["game"]["id"], players


def _submit(client: TestClient, game_id: str, player_id: str, text: str):
    return client.post(
        "/api/missions/submit",
        json={"gameId": game_id, "playerId": player_id, "missionText": text},
    )


def test_submit_mission_returns_unassigned_mission(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    res = _submit(client, game_id, players[0]["id"], "Get someone to sing")
    assert res.status_code == 200
    mission = res.json()["mission"]

    assert mission["gameId"] == game_id
    assert mission["enteredBy"] == players[0]["id"]
    assert mission["assignedTo"] is None
    assert mission["isRevealed"] is False
    assert mission["missionText"] == "Get someone to sing"

    state = client.get(f"/api/games/{game_id}").json()
    assert state["game"]["status"] == "lobby"


def test_second_submission_from_same_player_returns_409(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    assert _submit(client, game_id, players[0]["id"], "first").status_code == 200
    res = _submit(client, game_id, players[0]["id"], "second")
    assert res.status_code == 409


def test_submit_for_unknown_game_or_player_returns_404(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    assert _submit(client, "no-game", players[0]["id"], "x").status_code == 404
    assert _submit(client, game_id, "no-player", "x").status_code == 404


def test_submit_for_player_of_another_game_returns_400(client: TestClient, db: Session):
    game_id, _ = _lobby(client)
    _other_game_id, other_players = _lobby(client)

    res = _submit(client, game_id, other_players[0]["id"], "sneaky")
    assert res.status_code == 400


def test_blank_mission_text_is_rejected(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    assert _submit(client, game_id, players[0]["id"], "").status_code == 422
    assert _submit(client, game_id, players[0]["id"], "   ").status_code == 422


def test_mission_text_is_stored_trimmed(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    res = _submit(client, game_id, players[0]["id"], "  touch your nose  ")
    assert res.status_code == 200
    assert res.json()["mission"]["missionText"] == "touch your nose"


def test_last_submission_distributes_missions(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    for p in players:
        assert _submit(client, game_id, p["id"], f"mission from {p['name']}").status_code == 200

    state = client.get(f"/api/games/{game_id}").json()
    assert state["game"]["status"] == "playing"
    assert state["game"]["timerStartedAt"] is not None

    for p in players:
        res = client.get(f"/api/missions/player/{p['id']}")
        assert res.status_code == 200
        mission = res.json()["mission"]
        assert mission is not None
        assert mission["assignedTo"] == p["id"]
        assert mission["enteredBy"] != p["id"]


def test_submission_after_distribution_returns_400(client: TestClient, db: Session):
    game_id, players = _lobby(client, guest_names=("B",))
    for p in players:
        _submit(client, game_id, p["id"], "m")

    # 配布後に参加したプレイヤーはいないので、既存プレイヤーの再提出で確認
    res = _submit(client, game_id, players[0]["id"], "late")
    assert res.status_code == 400


def test_player_mission_is_null_before_distribution(client: TestClient, db: Session):
    game_id, players = _lobby(client)

    res = client.get(f"/api/missions/player/{players[1]['id']}")
    assert res.status_code == 200
    assert res.json() == {"mission": None}
