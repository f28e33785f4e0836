#!/usr/bin/env python3
"""
起動中のサーバーに対して、ロビー作成 → 参加 → ミッション提出 → 配布 →
アクション → 終了 までを一通り叩くスモークテスト。

  uvicorn secret_missions.main:app
  python scripts/smoke_flow.py [BASE_URL]
"""
import json
import sys
from urllib import request, error

BASE_URL = "http://127.0.0.1:8000"


def api(method, path, body=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}
    except OSError as e:
        return 0, {"detail": str(e)}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def ensure(condition, message):
    if not condition:
        raise RuntimeError(message)


def print_case(title):
    print(f"\n=== {title} ===")


def create_lobby(names):
    status, data = api(
        "POST",
        "/api/games/create",
        {"mode": "online", "hostName": names[0], "timerDuration": 10},
    )
    created = must_ok(status, data, "create")
    players = [created["player"]]
    for name in names[1:]:
        status, data = api(
            "POST",
            "/api/games/join",
            {"roomCode": created["roomCode"], "playerName": name},
        )
        players.append(must_ok(status, data, f"join {name}")["player"])
    return created["game"]["id"], created["roomCode"], players


def submit_all(game_id, players):
    for p in players:
        status, data = api(
            "POST",
            "/api/missions/submit",
            {"gameId": game_id, "playerId": p["id"], "missionText": f"{p['name']}'s mission"},
        )
        must_ok(status, data, f"submit {p['name']}")


def action(player_id, name, guesser=None):
    body = {"action": name}
    if guesser:
        body["guessingPlayerId"] = guesser
    status, data = api("POST", f"/api/players/{player_id}/action", body)
    return must_ok(status, data, name)["player"]


def fetch_game(game_id):
    status, data = api("GET", f"/api/games/{game_id}")
    return must_ok(status, data, "game")


def case_unknown_room_code():
    print_case("unknown room code")
    status, data = api(
        "POST", "/api/games/join", {"roomCode": "000000", "playerName": "Nobody"}
    )
    ensure(status == 404, f"expected 404, got {status} {data}")
    print("ok: 404")


def case_full_round(player_count):
    print_case(f"full round with {player_count} players")
    names = [f"P{i+1}" for i in range(player_count)]
    game_id, room_code, players = create_lobby(names)
    print(f"room code: {room_code}")

    submit_all(game_id, players)
    state = fetch_game(game_id)
    ensure(state["game"]["status"] == "playing", "missions were not distributed")

    for p in players:
        status, data = api("GET", f"/api/missions/player/{p['id']}")
        mission = must_ok(status, data, "mission")["mission"]
        ensure(mission is not None, f"{p['name']} has no mission")
        ensure(mission["enteredBy"] != p["id"], f"{p['name']} got their own mission")
        print(f"{p['name']}: {mission['missionText']}")

    host = players[0]
    for target in players[1:]:
        action(target["id"], "eliminate", guesser=host["id"])

    state = fetch_game(game_id)
    ensure(state["game"]["status"] == "finished", "game did not finish")

    status, data = api("GET", f"/api/games/{game_id}/results")
    results = must_ok(status, data, "results")
    ensure(results["winnerIds"] == [host["id"]], f"unexpected winners {results}")
    print("ok: host wins with", player_count - 1, "points")


def main():
    global BASE_URL
    if len(sys.argv) > 1:
        BASE_URL = sys.argv[1].rstrip("/")

    case_unknown_room_code()
    for n in (4, 6):
        case_full_round(n)
    print("\nall smoke cases passed")


if __name__ == "__main__":
    main()
