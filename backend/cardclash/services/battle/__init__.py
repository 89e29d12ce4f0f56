from .coordinator import MatchCoordinator
from .damage import calculate_damage, effectiveness
from .decks import DeckStore
from .identity import ConnectionRegistry, issue_token, verify_token
from .projection import player_view
from .rooms import RoomRegistry
from .sessions import SessionManager
from .state import BattleCard, GameSession, Identity, PlayerState, WaitingRoom

__all__ = [
    'MatchCoordinator', 'calculate_damage', 'effectiveness', 'DeckStore',
    'ConnectionRegistry', 'issue_token', 'verify_token', 'player_view',
    'RoomRegistry', 'SessionManager', 'BattleCard', 'GameSession', 'Identity',
    'PlayerState', 'WaitingRoom',
]
