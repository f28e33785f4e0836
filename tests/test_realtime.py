# tests/test_realtime.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from secret_missions.models.game import Player


def _create_game(client: TestClient):
    return client.post(
        "/api/games/create", json={"mode": "online", "hostName": "Host"}
    ).json()


def _register(ws, player_id: str) -> dict:
    ws.send_json({"event": "register_player", "data": {"playerId": player_id}})
    return ws.receive_json()


def test_connect_sends_socket_id(client: TestClient, db: Session):
    with client.websocket_connect("/ws") as ws:
        hello = ws.receive_json()

    assert hello["event"] == "connected"
    assert isinstance(hello["socketId"], str)
    assert len(hello["socketId"]) == 8


def test_register_player_stores_socket_id(client: TestClient, db: Session):
    created = _create_game(client)
    host_id = created["player"]["id"]

    with client.websocket_connect("/ws") as ws:
        socket_id = ws.receive_json()["socketId"]
        ack = _register(ws, host_id)

    assert ack == {"event": "registered", "data": {"playerId": host_id}}
    db.expire_all()
    assert db.get(Player, host_id).socket_id == socket_id


def test_register_unknown_player_returns_error_event(client: TestClient, db: Session):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        reply = _register(ws, "nobody")

    assert reply["event"] == "error"
    assert reply["data"]["message"] == "Player not found"


def test_host_is_notified_when_guest_joins(client: TestClient, db: Session):
    created = _create_game(client)

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        _register(ws, created["player"]["id"])

        res = client.post(
            "/api/games/join",
            json={"roomCode": created["roomCode"], "playerName": "Guest"},
        )
        assert res.status_code == 200

        message = ws.receive_json()

    assert message["event"] == "player_joined"
    assert message["data"]["player"]["name"] == "Guest"
    assert message["data"]["game"]["id"] == created["game"]["id"]


def test_missions_distributed_and_player_updated_events(client: TestClient, db: Session):
    created = _create_game(client)
    game_id = created["game"]["id"]
    host_id = created["player"]["id"]
    guest = client.post(
        "/api/games/join",
        json={"roomCode": created["roomCode"], "playerName": "Guest"},
    ).json()["player"]

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        _register(ws, host_id)

        for pid in (host_id, guest["id"]):
            client.post(
                "/api/missions/submit",
                json={"gameId": game_id, "playerId": pid, "missionText": "wink"},
            )

        distributed = ws.receive_json()

        client.post(
            f"/api/players/{guest['id']}/action",
            json={"action": "eliminate", "guessingPlayerId": host_id},
        )
        updated = ws.receive_json()
        ended = ws.receive_json()

    assert distributed["event"] == "missions_distributed"
    assignments = distributed["data"]["assignments"]
    assert {a["playerId"] for a in assignments} == {host_id, guest["id"]}

    assert updated["event"] == "player_updated"
    assert updated["data"]["player"]["id"] == guest["id"]
    assert updated["data"]["player"]["isEliminated"] is True

    assert ended["event"] == "game_ended"
    assert len(ended["data"]["players"]) == 2


def test_player_ready_and_game_update_are_rebroadcast(client: TestClient, db: Session):
    created = _create_game(client)
    game_id = created["game"]["id"]
    host_id = created["player"]["id"]

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        _register(ws, host_id)

        ws.send_json({"event": "player_ready", "data": {"gameId": game_id, "playerId": host_id}})
        ready = ws.receive_json()

        update = {"gameId": game_id, "action": "add_point", "playerId": host_id}
        ws.send_json({"event": "game_update", "data": update})
        rebroadcast = ws.receive_json()

        ws.send_json({"event": "ping"})
        pong = ws.receive_json()

    assert ready == {"event": "player_ready", "data": {"playerId": host_id}}
    assert rebroadcast == {"event": "game_update", "data": update}
    assert pong == {"event": "pong"}


def test_invalid_json_is_ignored(client: TestClient, db: Session):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json({"event": "ping"})
        pong = ws.receive_json()

    assert pong == {"event": "pong"}


def test_end_game_broadcasts_game_ended(client: TestClient, db: Session):
    created = _create_game(client)
    game_id = created["game"]["id"]

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        _register(ws, created["player"]["id"])

        client.post(f"/api/games/{game_id}/end")
        message = ws.receive_json()

    assert message["event"] == "game_ended"
    assert message["data"]["players"][0]["isHost"] is True


def test_failing_message_keeps_socket_open(client: TestClient, db: Session):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        ws.send_json({"event": "player_ready", "data": {"gameId": {"x": 1}}})
        reply = ws.receive_json()

        ws.send_json({"event": "ping"})
        pong = ws.receive_json()

    assert reply["event"] == "error"
    assert reply["data"]["event"] == "player_ready"
    assert pong == {"event": "pong"}
