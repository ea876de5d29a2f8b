import threading
from typing import Dict, List, Optional, Tuple

from oddson.models import Room, Player, generate_room_code, WAITING, PENDING
from .errors import RoomNotFound, RoomFull, NotInRoom, AlreadyInRoom


class SessionRegistry:
    """In-memory owner of every live room.

    One instance is built per application and handed to the socket handlers.
    Callers hold ``lock`` across a whole read-validate-mutate sequence so each
    inbound event lands as a single transition; the registry's own methods
    take it as well, so standalone calls are safe too.
    """

    def __init__(self, code_length: int = 6, default_max_range: int = 10):
        self.code_length = code_length
        self.default_max_range = default_max_range
        self.lock = threading.RLock()
        self._rooms: Dict[str, Room] = {}

    def __len__(self) -> int:
        with self.lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        with self.lock:
            return room_id in self._rooms

    def create_room(self) -> Room:
        with self.lock:
            # Re-roll on collision; 36**6 codes keeps this loop short
            code = generate_room_code(self.code_length, taken=self._rooms)
            room = Room(id=code, max_range=self.default_max_range)
            self._rooms[code] = room
            return room

    def get_room(self, room_id) -> Room:
        room = self.find_room(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def find_room(self, room_id) -> Optional[Room]:
        with self.lock:
            return self._rooms.get(room_id) if room_id else None

    def room_of(self, player_id: str) -> Optional[Room]:
        with self.lock:
            for room in self._rooms.values():
                if room.has_player(player_id):
                    return room
            return None

    def add_player(self, room_id, player: Player) -> Room:
        with self.lock:
            room = self.get_room(room_id)
            if self.room_of(player.id) is not None:
                raise AlreadyInRoom()
            if room.is_full:
                raise RoomFull()
            room.players.append(player)
            return room

    def remove_player(self, room_id, player_id: str) -> Optional[Room]:
        """Remove a player; returns the remaining room, or None if it was deleted."""
        with self.lock:
            room = self.get_room(room_id)
            player = room.get_player(player_id)
            if player is None:
                raise NotInRoom()
            room.players.remove(player)
            room.choices.pop(player_id, None)
            if room.current_negotiator == player_id:
                room.current_negotiator = None
            proposal = room.current_proposal
            if proposal is not None and proposal.status == PENDING and proposal.proposer_id == player_id:
                # Withdrawn with its proposer; the history entry stays
                room.current_proposal = None
                room.current_negotiator = None
                room.state = WAITING
            if room.is_empty:
                del self._rooms[room_id]
                return None
            return room

    def remove_player_from_all_rooms(self, player_id: str) -> List[Tuple[str, Optional[Room]]]:
        """Drop a player from every room it appears in.

        Returns ``(room_id, remaining_room_or_None)`` for each removal.
        """
        removed = []
        with self.lock:
            for room_id in [rid for rid, r in self._rooms.items() if r.has_player(player_id)]:
                removed.append((room_id, self.remove_player(room_id, player_id)))
        return removed
