import itertools
import logging
import threading
from typing import Dict, List

from cardclash.errors import NotFoundError, RoomFullError, ValidationError
from .state import WaitingRoom

logger = logging.getLogger(__name__)

MAX_PLAYERS = 2


class RoomRegistry:
    """Waiting rooms that hold one committed player.

    Callers only ever get dict snapshots back. A room that has been matched
    keeps its second player until ``remove`` (hand-off done) or ``release``
    (hand-off failed) is called, so a concurrent join sees it as full.
    """

    def __init__(self):
        self._rooms: Dict[int, WaitingRoom] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, host_id: int, host_email: str, deck_id: int) -> dict:
        with self._lock:
            room_id = next(self._ids)
            room = WaitingRoom(room_id=room_id, host_id=host_id, host_email=host_email,
                               deck_id=deck_id, players=[host_id])
            self._rooms[room_id] = room
            logger.info(f"[room-create] room={room_id} host={host_id} deck={deck_id}")
            return room.to_dict()

    def waiting(self) -> List[dict]:
        with self._lock:
            return [r.to_dict() for r in self._rooms.values() if len(r.players) == 1]

    def check_joinable(self, room_id: int, guest_id: int) -> None:
        """Raise unless the guest could join right now. Changes nothing."""
        with self._lock:
            self._ensure_joinable(self._get(room_id), guest_id)

    def claim(self, room_id: int, guest_id: int) -> dict:
        """Seat the guest as second player and return the filled room."""
        with self._lock:
            room = self._get(room_id)
            self._ensure_joinable(room, guest_id)
            room.players.append(guest_id)
            logger.info(f"[room-join] room={room_id} guest={guest_id}")
            return room.to_dict()

    def release(self, room_id: int, guest_id: int) -> None:
        """Undo a claim whose hand-off could not complete."""
        with self._lock:
            room = self._rooms.get(room_id)
            if room is not None and len(room.players) == MAX_PLAYERS and room.players[-1] == guest_id:
                room.players.pop()
                logger.info(f"[room-release] room={room_id} guest={guest_id}")

    def remove(self, room_id: int) -> None:
        with self._lock:
            self._rooms.pop(room_id, None)

    def withdraw(self, host_id: int) -> List[int]:
        """Drop every still-waiting room hosted by the user."""
        with self._lock:
            gone = [rid for rid, r in self._rooms.items() if r.host_id == host_id and len(r.players) == 1]
            for rid in gone:
                del self._rooms[rid]
        if gone:
            logger.info(f"[room-withdraw] host={host_id} rooms={gone}")
        return gone

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def _get(self, room_id: int) -> WaitingRoom:
        room = self._rooms.get(room_id)
        if room is None:
            raise NotFoundError('Room not found')
        return room

    @staticmethod
    def _ensure_joinable(room: WaitingRoom, guest_id: int) -> None:
        if len(room.players) >= MAX_PLAYERS:
            raise RoomFullError('Room is full')
        if guest_id in room.players:
            raise ValidationError('You cannot join your own room')
