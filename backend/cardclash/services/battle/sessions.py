import copy
import logging
import random
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from cardclash.errors import AuthorizationError, NotFoundError, ValidationError
from .damage import calculate_damage
from .state import BattleCard, GameSession, PlayerState

logger = logging.getLogger(__name__)


class _SessionSlot:
    """A live session plus the lock serializing every mutation of it."""

    def __init__(self, session: GameSession):
        self.session = session
        self.lock = threading.Lock()
        self.closed = False


class SessionManager:
    """Owns every active GameSession and runs the turn state machine.

    Each transition holds the session's own lock from lookup to publication,
    so two actions on the same session never interleave and the notifier sees
    the snapshots in mutation order. Sessions in different rooms do not share
    a lock beyond the brief registry lookup.

    The notifier receives ``game_started(session)``, ``state_changed(session)``,
    ``enter_scope(sid, room_id)`` and ``game_ended(session, winner_id, reason)``
    while the lock is held and must not call back into the manager.
    """

    def __init__(self, notifier, hand_size: int = 5, winning_score: int = 3,
                 multipliers: Optional[Dict[str, float]] = None, rng: Optional[random.Random] = None):
        self._notifier = notifier
        self.hand_size = hand_size
        self.winning_score = winning_score
        self._multipliers = multipliers
        self._rng = rng or random.Random()
        self._slots: Dict[int, _SessionSlot] = {}
        self._by_user: Dict[int, Set[int]] = defaultdict(set)
        self._lock = threading.Lock()

    # ---- lifecycle ----

    def start(self, room_id: int, host_id: int, host_sid: str, host_cards: Sequence[BattleCard],
              guest_id: int, guest_sid: str, guest_cards: Sequence[BattleCard]) -> None:
        """Create the session for a room that just filled. The host moves first."""
        host_pile = list(host_cards)
        guest_pile = list(guest_cards)
        self._rng.shuffle(host_pile)
        self._rng.shuffle(guest_pile)
        session = GameSession(
            room_id=room_id,
            players=[
                PlayerState(user_id=host_id, sid=host_sid, draw_pile=host_pile),
                PlayerState(user_id=guest_id, sid=guest_sid, draw_pile=guest_pile),
            ],
            current_turn_user_id=host_id,
        )
        slot = _SessionSlot(session)
        with slot.lock:
            with self._lock:
                if room_id in self._slots:
                    raise ValidationError(f'A game is already running in room {room_id}')
                self._slots[room_id] = slot
                self._by_user[host_id].add(room_id)
                self._by_user[guest_id].add(room_id)
            logger.info(f"[game-start] room={room_id} host={host_id} guest={guest_id}")
            self._notifier.game_started(session)
            self._notifier.state_changed(session)

    def forfeit(self, user_id: int) -> List[int]:
        """End every session the user takes part in, awarding it to the opponent."""
        ended = []
        for room_id, slot in self._slots_of(user_id):
            with slot.lock:
                if slot.closed:
                    continue
                winner = slot.session.opponent_of(user_id).user_id
                self._close(room_id, slot)
                logger.info(f"[forfeit] room={room_id} leaver={user_id} winner={winner}")
                self._notifier.game_ended(slot.session, winner, 'forfeit')
                ended.append(room_id)
        return ended

    def rebind(self, user_id: int, sid: str) -> List[int]:
        """Move the user's seats onto another live connection and catch it up."""
        moved = []
        for room_id, slot in self._slots_of(user_id):
            with slot.lock:
                if slot.closed:
                    continue
                player = slot.session.player(user_id)
                if player.sid == sid:
                    continue
                logger.info(f"[rebind] room={room_id} user={user_id} sid={player.sid}->{sid}")
                player.sid = sid
                self._notifier.enter_scope(sid, room_id)
                self._notifier.state_changed(slot.session)
                moved.append(room_id)
        return moved

    def snapshot(self, room_id: int) -> GameSession:
        """Deep copy of a session, for inspection only."""
        slot = self._slot(room_id)
        with slot.lock:
            if slot.closed:
                raise NotFoundError('Game not found')
            return copy.deepcopy(slot.session)

    def active_count(self) -> int:
        with self._lock:
            return len(self._slots)

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return room_id in self._slots

    # ---- transitions ----

    def draw_cards(self, room_id: int, user_id: int) -> None:
        def draw(session, player, opponent):
            drawn = 0
            while len(player.hand) < self.hand_size and player.draw_pile:
                player.hand.append(player.draw_pile.pop(0))
                drawn += 1
            logger.info(f"[draw] room={session.room_id} user={player.user_id} drawn={drawn} hand={len(player.hand)}")

        self._run(room_id, user_id, draw)

    def play_card(self, room_id: int, user_id: int, card_index: int) -> None:
        def play(session, player, opponent):
            if isinstance(card_index, bool) or not isinstance(card_index, int):
                raise ValidationError('cardIndex must be an integer')
            if card_index < 0 or card_index >= len(player.hand):
                raise ValidationError('Invalid card index')
            if player.active_card is not None:
                raise ValidationError('Player already has an active card')
            player.active_card = player.hand.pop(card_index)
            logger.info(f"[play] room={session.room_id} user={player.user_id} card={player.active_card.id}")

        self._run(room_id, user_id, play)

    def attack(self, room_id: int, user_id: int) -> None:
        def strike(session, attacker, defender):
            if attacker.active_card is None:
                raise ValidationError('No active card to attack with')
            if defender.active_card is None:
                raise ValidationError('Opponent has no active card')
            target = defender.active_card
            damage = calculate_damage(attacker.active_card.attack, attacker.active_card.type,
                                      target.type, self._multipliers)
            target.hp -= damage
            logger.info(f"[attack] room={session.room_id} attacker={attacker.user_id} damage={damage} hp={target.hp}")
            if target.hp <= 0:
                attacker.score += 1
                defender.discard_pile.append(target)
                defender.active_card = None
                if attacker.score >= self.winning_score:
                    return attacker.user_id
            session.current_turn_user_id = defender.user_id
            return None

        self._run(room_id, user_id, strike)

    def end_turn(self, room_id: int, user_id: int) -> None:
        def pass_turn(session, player, opponent):
            session.current_turn_user_id = opponent.user_id
            logger.info(f"[end-turn] room={session.room_id} next={opponent.user_id}")

        self._run(room_id, user_id, pass_turn)

    # ---- internals ----

    def _slot(self, room_id: int) -> _SessionSlot:
        with self._lock:
            slot = self._slots.get(room_id)
        if slot is None:
            raise NotFoundError('Game not found')
        return slot

    def _slots_of(self, user_id: int) -> List[Tuple[int, _SessionSlot]]:
        with self._lock:
            return [(rid, self._slots[rid]) for rid in self._by_user.get(user_id, ()) if rid in self._slots]

    def _run(self, room_id: int, user_id: int,
             mutate: Callable[[GameSession, PlayerState, PlayerState], Optional[int]]) -> None:
        slot = self._slot(room_id)
        with slot.lock:
            if slot.closed:
                raise NotFoundError('Game not found')
            session = slot.session
            if session.current_turn_user_id != user_id:
                raise AuthorizationError('Not your turn')
            winner = mutate(session, session.player(user_id), session.opponent_of(user_id))
            if winner is not None:
                self._close(room_id, slot)
                logger.info(f"[game-end] room={room_id} winner={winner}")
                self._notifier.game_ended(session, winner, 'victory')
                return
            self._notifier.state_changed(session)

    def _close(self, room_id: int, slot: _SessionSlot) -> None:
        slot.closed = True
        with self._lock:
            self._slots.pop(room_id, None)
            for p in slot.session.players:
                rooms = self._by_user.get(p.user_id)
                if rooms is not None:
                    rooms.discard(room_id)
                    if not rooms:
                        del self._by_user[p.user_id]
