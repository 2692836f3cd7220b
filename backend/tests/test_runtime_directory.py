import asyncio

import pytest

from mushroom_battle.runtime_errors import PlayerIdTaken, RoomFull, RoomNotFound
from mushroom_battle.runtime_types import Broadcast


@pytest.mark.asyncio
async def test_created_room_codes_are_unique(live_runtime, connect):
    directory = live_runtime.directory
    codes = set()
    for index in range(60):
        connection, _ = connect()
        room = await directory.create_room(connection, f"p{index}", "Host")
        codes.add(room.room_code)
    assert len(codes) == 60
    assert directory.active_rooms_count == 60


@pytest.mark.asyncio
async def test_create_room_starts_in_lobby_with_creator_only(live_runtime, connect):
    connection, _ = connect()
    room = await live_runtime.directory.create_room(connection, "a1", "Alice")

    assert room.phase == "lobby"
    assert [(p.player_id, p.name, p.score) for p in room.players] == [("a1", "Alice", 0)]
    assert live_runtime.directory.get_room(room.room_code.lower()) is room


@pytest.mark.asyncio
async def test_join_unknown_room_has_no_effect(live_runtime, connect):
    host, host_socket = connect()
    room = await live_runtime.directory.create_room(host, "a1", "Alice")
    joiner, _ = connect()

    with pytest.raises(RoomNotFound):
        await live_runtime.directory.join_room(joiner, "ZZZZZZ", "b1", "Bob")

    assert [p.player_id for p in room.players] == ["a1"]
    assert host_socket.sent == []
    assert live_runtime.directory.rooms_for_connection(joiner) == set()


@pytest.mark.asyncio
async def test_join_returns_roster_for_every_member(live_runtime, connect):
    host, _ = connect()
    room = await live_runtime.directory.create_room(host, "a1", "Alice")
    joiner, _ = connect()

    broadcast = await live_runtime.directory.join_room(joiner, room.room_code.lower(), "b1", "Bob")

    assert broadcast.payload == {
        "type": "players_update",
        "players": [
            {"id": "a1", "name": "Alice", "score": 0},
            {"id": "b1", "name": "Bob", "score": 0},
        ],
    }
    assert set(broadcast.recipients) == {host, joiner}


@pytest.mark.asyncio
async def test_sixth_player_is_rejected(live_runtime, connect):
    host, _ = connect()
    room = await live_runtime.directory.create_room(host, "p1", "One")
    for index in range(2, 6):
        connection, _ = connect()
        await live_runtime.directory.join_room(connection, room.room_code, f"p{index}", f"Player {index}")

    late, _ = connect()
    with pytest.raises(RoomFull) as excinfo:
        await live_runtime.directory.join_room(late, room.room_code, "p6", "Six")

    assert excinfo.value.to_payload()["type"] == "error"
    assert len(room.players) == 5
    assert room.find_player("p6") is None


@pytest.mark.asyncio
async def test_duplicate_player_id_is_rejected(live_runtime, connect):
    host, _ = connect()
    room = await live_runtime.directory.create_room(host, "a1", "Alice")
    other, _ = connect()

    with pytest.raises(PlayerIdTaken):
        await live_runtime.directory.join_room(other, room.room_code, "a1", "Impostor")
    assert len(room.players) == 1


@pytest.mark.asyncio
async def test_remove_connection_keeps_room_with_remaining_players(live_runtime, connect):
    host, host_socket = connect()
    room = await live_runtime.directory.create_room(host, "a1", "Alice")
    guest, _ = connect()
    await live_runtime.directory.join_room(guest, room.room_code, "b1", "Bob")

    removed = await live_runtime.directory.remove_connection(guest)

    assert removed == []
    assert [p.player_id for p in room.players] == ["a1"]
    # Departures are silent.
    assert host_socket.sent == []
    assert live_runtime.directory.rooms_for_connection(guest) == set()


@pytest.mark.asyncio
async def test_room_is_deleted_when_last_connection_leaves(live_runtime, connect):
    host, _ = connect()
    room = await live_runtime.directory.create_room(host, "a1", "Alice")
    code = room.room_code

    removed = await live_runtime.directory.remove_connection(host)

    assert removed == [code]
    assert room.closed
    assert live_runtime.directory.get_room(code) is None
    latecomer, _ = connect()
    with pytest.raises(RoomNotFound):
        await live_runtime.directory.join_room(latecomer, code, "b1", "Bob")


@pytest.mark.asyncio
async def test_one_connection_in_two_rooms_leaves_both(live_runtime, connect):
    wanderer, _ = connect()
    first = await live_runtime.directory.create_room(wanderer, "w1", "Wanderer")
    host, _ = connect()
    second = await live_runtime.directory.create_room(host, "h1", "Host")
    await live_runtime.directory.join_room(wanderer, second.room_code, "w1", "Wanderer")

    removed = await live_runtime.directory.remove_connection(wanderer)

    assert removed == [first.room_code]
    assert [p.player_id for p in second.players] == ["h1"]


@pytest.mark.asyncio
async def test_concurrent_joins_never_overfill_a_room(live_runtime, connect):
    host, _ = connect()
    room = await live_runtime.directory.create_room(host, "p1", "One")
    for index in range(2, 5):
        connection, _ = connect()
        await live_runtime.directory.join_room(connection, room.room_code, f"p{index}", f"P{index}")

    joiners = [connect()[0] for _ in range(10)]
    results = await asyncio.gather(
        *(
            live_runtime.directory.join_room(connection, room.room_code, f"late{index}", "Late")
            for index, connection in enumerate(joiners)
        ),
        return_exceptions=True,
    )

    assert sum(1 for result in results if isinstance(result, Broadcast)) == 1
    assert sum(1 for result in results if isinstance(result, RoomFull)) == 9
    assert len(room.players) == 5
