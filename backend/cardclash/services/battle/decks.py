import logging
from contextlib import contextmanager
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from cardclash.errors import InternalError, ValidationError
from cardclash.models import Deck
from .state import BattleCard

logger = logging.getLogger(__name__)


class DeckStore:
    """Read access to committed decks in the catalog database.

    Deck rows and their cards load lazily, so every read of them happens
    inside ``_storage`` and a database failure surfaces as InternalError.
    """

    def __init__(self, deck_size: int = 10):
        self.deck_size = deck_size

    def validate(self, deck_id: int, user_id: int) -> bool:
        """True when the deck exists, belongs to the user and has exactly deck_size cards."""
        with self._storage(deck_id):
            deck = Deck.query.filter_by(id=deck_id).first()
            if deck is None or deck.user_id != user_id:
                return False
            return len(deck.cards) == self.deck_size

    def require_valid(self, deck_id: int, user_id: int) -> None:
        if not self.validate(deck_id, user_id):
            logger.info(f"[deck-reject] deck={deck_id} user={user_id}")
            raise ValidationError('Invalid deck or deck not owned by user')

    def load(self, deck_id: int) -> List[BattleCard]:
        """Fresh battle copies of the deck's cards, in deck order."""
        with self._storage(deck_id):
            deck = Deck.query.filter_by(id=deck_id).first()
            if deck is None:
                raise InternalError('Deck not found')
            return [BattleCard.from_model(dc.card) for dc in deck.cards]

    @contextmanager
    def _storage(self, deck_id: int):
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(f"[deck-store] deck={deck_id} read failed: {exc}")
            raise InternalError('Deck storage unavailable') from exc
