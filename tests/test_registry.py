import pytest

from oddson.models import Player, WAITING
from oddson.services.rooms.errors import RoomNotFound, RoomFull, NotInRoom, AlreadyInRoom


def test_create_room_defaults(bare_registry):
    room = bare_registry.create_room()
    assert len(room.id) == 6
    assert room.id.isalnum() and room.id.upper() == room.id
    assert room.state == WAITING
    assert room.players == []
    assert room.max_range == 10
    assert bare_registry.get_room(room.id) is room
    assert len(bare_registry) == 1


def test_create_room_rerolls_on_collision(bare_registry, monkeypatch):
    codes = iter(['AAAAAA', 'AAAAAA', 'BBBBBB'])
    monkeypatch.setattr('oddson.models.random.choices', lambda pool, k: list(next(codes)))
    first = bare_registry.create_room()
    second = bare_registry.create_room()
    assert first.id == 'AAAAAA'
    assert second.id == 'BBBBBB'


def test_get_unknown_room_fails(bare_registry):
    with pytest.raises(RoomNotFound):
        bare_registry.get_room('NOPE00')
    with pytest.raises(RoomNotFound):
        bare_registry.get_room(None)
    assert len(bare_registry) == 0


def test_third_player_is_rejected(bare_registry):
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    bare_registry.add_player(room.id, Player('b', 'Bob'))
    with pytest.raises(RoomFull):
        bare_registry.add_player(room.id, Player('c', 'Cara'))
    assert [p.id for p in room.players] == ['a', 'b']


def test_player_cannot_sit_in_two_rooms(bare_registry):
    first = bare_registry.create_room()
    second = bare_registry.create_room()
    bare_registry.add_player(first.id, Player('a', 'Alice'))
    with pytest.raises(AlreadyInRoom):
        bare_registry.add_player(second.id, Player('a', 'Alice'))
    assert second.players == []


def test_remove_last_player_deletes_room(bare_registry):
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    assert bare_registry.remove_player(room.id, 'a') is None
    assert room.id not in bare_registry
    with pytest.raises(RoomNotFound):
        bare_registry.get_room(room.id)


def test_remove_player_keeps_room_and_drops_their_state(bare_registry):
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    bare_registry.add_player(room.id, Player('b', 'Bob'))
    room.choices['b'] = 3
    room.current_negotiator = 'b'
    remaining = bare_registry.remove_player(room.id, 'b')
    assert remaining is room
    assert [p.id for p in room.players] == ['a']
    assert room.choices == {}
    assert room.current_negotiator is None


def test_remove_non_member_fails(bare_registry):
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    with pytest.raises(NotInRoom):
        bare_registry.remove_player(room.id, 'zzz')


def test_remove_player_from_all_rooms(bare_registry):
    solo = bare_registry.create_room()
    shared = bare_registry.create_room()
    bare_registry.add_player(solo.id, Player('a', 'Alice'))
    bare_registry.add_player(shared.id, Player('b', 'Bob'))
    bare_registry.add_player(shared.id, Player('c', 'Cara'))

    assert bare_registry.remove_player_from_all_rooms('a') == [(solo.id, None)]
    assert solo.id not in bare_registry

    removed = bare_registry.remove_player_from_all_rooms('b')
    assert removed == [(shared.id, shared)]
    assert [p.id for p in shared.players] == ['c']

    assert bare_registry.remove_player_from_all_rooms('ghost') == []


def test_proposer_leaving_withdraws_live_proposal(bare_registry):
    from oddson.services.rooms import negotiation
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    bare_registry.add_player(room.id, Player('b', 'Bob'))
    proposal = negotiation.create_proposal(room, 'a', 'sing', 10)

    bare_registry.remove_player(room.id, 'a')
    assert room.current_proposal is None
    assert room.current_negotiator is None
    assert room.state == WAITING
    assert room.proposal_history == [proposal]


def test_negotiator_always_present_after_departures(bare_registry):
    from oddson.services.rooms import negotiation
    room = bare_registry.create_room()
    bare_registry.add_player(room.id, Player('a', 'Alice'))
    bare_registry.add_player(room.id, Player('b', 'Bob'))
    negotiation.create_proposal(room, 'a', 'sing', 10)

    bare_registry.remove_player(room.id, 'b')
    assert room.current_negotiator is None
    assert room.current_proposal is not None

    bare_registry.add_player(room.id, Player('c', 'Cara'))
    assert negotiation.assign_pending_negotiator(room) == 'c'
    assert room.has_player(room.current_negotiator)


def test_lookups_wait_for_the_registry_lock(bare_registry):
    import threading
    room = bare_registry.create_room()
    found = []
    reader = threading.Thread(target=lambda: found.append(bare_registry.find_room(room.id)))

    with bare_registry.lock:
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        assert found == []
    reader.join(timeout=2)
    assert found == [room]
