from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Identity:
    """Who is behind a live connection, as proven by its bearer token."""
    user_id: int
    email: str


@dataclass
class BattleCard:
    """A battle-local copy of a catalog card. Only hp changes during a match."""
    id: int
    name: str
    hp: int
    attack: int
    type: str

    @classmethod
    def from_model(cls, card) -> 'BattleCard':
        return cls(id=card.id, name=card.name, hp=int(card.hp), attack=int(card.attack), type=card.type)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'hp': self.hp,
            'attack': self.attack,
            'type': self.type,
        }


@dataclass
class WaitingRoom:
    room_id: int
    host_id: int
    host_email: str
    deck_id: int
    players: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'roomId': self.room_id,
            'hostId': self.host_id,
            'hostEmail': self.host_email,
            'deckId': self.deck_id,
            'players': list(self.players),
        }


@dataclass
class PlayerState:
    user_id: int
    sid: str
    draw_pile: List[BattleCard] = field(default_factory=list)
    hand: List[BattleCard] = field(default_factory=list)
    active_card: Optional[BattleCard] = None
    discard_pile: List[BattleCard] = field(default_factory=list)
    score: int = 0

    def card_count(self) -> int:
        active = 1 if self.active_card is not None else 0
        return len(self.draw_pile) + len(self.hand) + active + len(self.discard_pile)


@dataclass
class GameSession:
    room_id: int
    players: List[PlayerState]
    current_turn_user_id: int

    def player(self, user_id: int) -> PlayerState:
        for p in self.players:
            if p.user_id == user_id:
                return p
        raise KeyError(user_id)

    def opponent_of(self, user_id: int) -> PlayerState:
        for p in self.players:
            if p.user_id != user_id:
                return p
        raise KeyError(user_id)
