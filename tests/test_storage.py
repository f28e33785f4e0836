# tests/test_storage.py

import pytest
from sqlalchemy.orm import Session

from secret_missions.errors import ConflictError, NotFoundError
from secret_missions.models.game import Mission, Player
from secret_missions.services.storage import GameStorage


def _game_with_players(storage: GameStorage, names: list[str], room_code: str = "123456"):
    game = storage.create_game(room_code, "online", 30)
    players = [
        storage.create_player(game.id, name=name, is_host=(i == 0))
        for i, name in enumerate(names)
    ]
    return game, players


def test_create_game_defaults(storage: GameStorage):
    game = storage.create_game("482913", "local", 15)

    assert game.room_code == "482913"
    assert game.mode == "local"
    assert game.status == "lobby"
    assert game.timer_duration == 15
    assert game.timer_started_at is None


def test_duplicate_room_code_raises_conflict(storage: GameStorage):
    storage.create_game("111111", "online", 30)

    with pytest.raises(ConflictError):
        storage.create_game("111111", "online", 30)

    # 失敗後もセッションは使える
    assert storage.get_game_by_room_code("111111").room_code == "111111"


def test_get_game_by_unknown_room_code_raises_not_found(storage: GameStorage):
    with pytest.raises(NotFoundError):
        storage.get_game_by_room_code("000000")
    assert storage.find_game_by_room_code("000000") is None


def test_players_listed_in_join_order_with_defaults(storage: GameStorage):
    game, _ = _game_with_players(storage, ["Host", "B", "C"])

    players = storage.list_players_by_game(game.id)
    assert [p.name for p in players] == ["Host", "B", "C"]
    assert [p.order_no for p in players] == [1, 2, 3]
    assert all(p.lives == 3 and p.points == 0 for p in players)
    assert sum(1 for p in players if p.is_host) == 1
    assert not any(p.is_eliminated or p.mission_completed for p in players)


def test_create_player_for_unknown_game_raises_not_found(storage: GameStorage):
    with pytest.raises(NotFoundError):
        storage.create_player("no-such-game", name="Ghost")


def test_single_row_player_mutations(storage: GameStorage):
    _, (p,) = _game_with_players(storage, ["Solo"])

    storage.update_player_socket_id(p.id, "abc123")
    storage.update_player_lives(p.id, 1)
    storage.update_player_points(p.id, 4)
    storage.eliminate_player(p.id)
    storage.mark_mission_completed(p.id)

    fresh = storage.get_player(p.id)
    assert fresh.socket_id == "abc123"
    assert fresh.lives == 1
    assert fresh.points == 4
    assert fresh.is_eliminated is True
    assert fresh.mission_completed is True


def test_one_mission_per_player(storage: GameStorage):
    game, (p1, p2) = _game_with_players(storage, ["A", "B"])

    storage.create_mission(game.id, p1.id, "Make someone say 'banana'")
    with pytest.raises(ConflictError):
        storage.create_mission(game.id, p1.id, "Second try")

    assert storage.count_missions(game.id) == 1


def test_assign_reveal_and_lookup_by_assignee(storage: GameStorage):
    game, (p1, p2) = _game_with_players(storage, ["A", "B"])
    mission = storage.create_mission(game.id, p1.id, "Get a high five")

    assert storage.get_mission_assigned_to(p2.id) is None

    storage.assign_mission(mission.id, p2.id)
    found = storage.get_mission_assigned_to(p2.id)
    assert found is not None
    assert found.id == mission.id
    assert found.is_revealed is False

    storage.reveal_mission(mission.id)
    assert storage.get_mission(mission.id).is_revealed is True


def test_status_never_moves_backward(storage: GameStorage):
    game, _ = _game_with_players(storage, ["A", "B"])

    storage.update_game_status(game.id, "playing")
    assert storage.get_game(game.id).timer_started_at is not None

    with pytest.raises(ConflictError):
        storage.update_game_status(game.id, "lobby")

    finished = storage.update_game_status(game.id, "finished")
    assert finished.status == "finished"
    assert finished.finished_at is not None

    with pytest.raises(ConflictError):
        storage.update_game_status(game.id, "playing")


def test_claim_distribution_only_succeeds_once(storage: GameStorage):
    game, _ = _game_with_players(storage, ["A", "B"])

    assert storage.claim_distribution(game.id) is True
    assert storage.claim_distribution(game.id) is False

    game = storage.get_game(game.id)
    assert game.status == "playing"
    assert game.timer_started_at is not None


def test_delete_game_cascades_to_players_and_missions(storage: GameStorage, db: Session):
    game, (p1, p2) = _game_with_players(storage, ["A", "B"])
    m = storage.create_mission(game.id, p1.id, "Whistle a tune")
    storage.assign_mission(m.id, p2.id)

    storage.delete_game(game.id)
    db.expire_all()

    assert db.query(Player).count() == 0
    assert db.query(Mission).count() == 0
    with pytest.raises(NotFoundError):
        storage.get_game(game.id)


def test_users_table(storage: GameStorage):
    user = storage.create_user("alice", "secret")

    assert storage.get_user(user.id).username == "alice"
    assert storage.get_user_by_username("alice").id == user.id
    assert storage.get_user_by_username("bob") is None

    with pytest.raises(ConflictError):
        storage.create_user("alice", "other")
