import logging
from typing import List, Optional

from cardclash.errors import AuthenticationError, InternalError
from .decks import DeckStore
from .identity import ConnectionRegistry
from .rooms import RoomRegistry
from .sessions import SessionManager
from .state import Identity

logger = logging.getLogger(__name__)


class MatchCoordinator:
    """Everything one server process knows about players, rooms and games.

    Owns the connection index, the waiting rooms and the active sessions and
    moves a room into a session once it fills. Transport concerns go through
    the notifier, which besides the session callbacks must provide
    ``room_created(sid, room)``, ``rooms_changed(rooms)``,
    ``enter_scope(sid, room_id)`` and ``leave_scope(sid, room_id)``.
    """

    def __init__(self, notifier, decks: DeckStore, hand_size: int = 5, winning_score: int = 3,
                 multipliers=None, rng=None):
        self.notifier = notifier
        self.decks = decks
        self.connections = ConnectionRegistry()
        self.rooms = RoomRegistry()
        self.sessions = SessionManager(notifier, hand_size=hand_size, winning_score=winning_score,
                                       multipliers=multipliers, rng=rng)

    # ---- connections ----

    def connect(self, sid: str, identity: Identity) -> None:
        self.connections.attach(sid, identity)
        logger.info(f"[connect] sid={sid} user={identity.user_id}")

    def disconnect(self, sid: str) -> Optional[Identity]:
        identity = self.connections.detach(sid)
        if identity is None:
            return None
        logger.info(f"[disconnect] sid={sid} user={identity.user_id}")
        # Waiting rooms stay open while the user has another live connection
        if self.connections.sid_for_user(identity.user_id) is None:
            self._withdraw(identity.user_id)
        self._settle(identity.user_id)
        return identity

    def identify(self, sid: str) -> Identity:
        identity = self.connections.identity(sid)
        if identity is None:
            raise AuthenticationError('Connection is not authenticated')
        return identity

    # ---- rooms ----

    def create_room(self, sid: str, deck_id: int) -> dict:
        user = self.identify(sid)
        self.decks.require_valid(deck_id, user.user_id)
        room = self.rooms.create(user.user_id, user.email, deck_id)
        self.notifier.enter_scope(sid, room['roomId'])
        self.notifier.room_created(sid, room)
        self.notifier.rooms_changed(self.rooms.waiting())
        return room

    def list_rooms(self) -> List[dict]:
        return self.rooms.waiting()

    def join_room(self, sid: str, room_id: int, deck_id: int) -> None:
        user = self.identify(sid)
        self.rooms.check_joinable(room_id, user.user_id)
        self.decks.require_valid(deck_id, user.user_id)
        room = self.rooms.claim(room_id, user.user_id)
        host_id, guest_id = room['players']
        try:
            host_sid = self.connections.sid_for_user(host_id)
            guest_sid = self.connections.sid_for_user(guest_id)
            if host_sid is None or guest_sid is None:
                raise InternalError('Player connection not found')
            host_cards = self.decks.load(room['deckId'])
            guest_cards = self.decks.load(deck_id)
            # The host may be on a newer connection than the one that created the room
            self.notifier.enter_scope(host_sid, room_id)
            self.notifier.enter_scope(guest_sid, room_id)
            try:
                self.sessions.start(room_id, host_id, host_sid, host_cards, guest_id, guest_sid, guest_cards)
            except Exception:
                self.notifier.leave_scope(guest_sid, room_id)
                raise
        except Exception:
            self.rooms.release(room_id, guest_id)
            # A host that left while the seat was claimed was skipped by withdraw
            if self.connections.sid_for_user(host_id) is None:
                self._withdraw(host_id)
            raise
        self.rooms.remove(room_id)
        self.notifier.rooms_changed(self.rooms.waiting())
        # Either player may have dropped or switched connections during the hand-off
        self._settle(host_id)
        self._settle(guest_id)

    # ---- game actions ----

    def draw_cards(self, sid: str, room_id: int) -> None:
        self.sessions.draw_cards(room_id, self.identify(sid).user_id)

    def play_card(self, sid: str, room_id: int, card_index: int) -> None:
        self.sessions.play_card(room_id, self.identify(sid).user_id, card_index)

    def attack(self, sid: str, room_id: int) -> None:
        self.sessions.attack(room_id, self.identify(sid).user_id)

    def end_turn(self, sid: str, room_id: int) -> None:
        self.sessions.end_turn(room_id, self.identify(sid).user_id)

    def stats(self) -> dict:
        return {
            'waitingRooms': len(self.rooms.waiting()),
            'activeGames': self.sessions.active_count(),
            'connections': len(self.connections),
        }

    def _withdraw(self, host_id: int) -> None:
        if self.rooms.withdraw(host_id):
            self.notifier.rooms_changed(self.rooms.waiting())

    def _settle(self, user_id: int) -> None:
        """Forfeit the user's games if they have no connection left, else follow the live one."""
        sid = self.connections.sid_for_user(user_id)
        if sid is None:
            self.sessions.forfeit(user_id)
        else:
            self.sessions.rebind(user_id, sid)
