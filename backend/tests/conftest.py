import os
import sys
import pytest

# Ensure the backend root (containing the `cardclash` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from cardclash import create_app, db, socketio
from cardclash.services.battle import BattleCard, issue_token


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    JWT_SECRET = 'test-jwt-secret'
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_SEC = 3600
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DECK_SIZE = 10
    HAND_SIZE = 5
    WINNING_SCORE = 3
    TYPE_MULTIPLIERS = {'super_effective': 2.0, 'not_very_effective': 0.5, 'neutral': 1.0}
    SOCKETIO_NAMESPACE = '/'
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'


class RecordingNotifier:
    """Stands in for the Socket.IO notifier and keeps every call in order."""

    def __init__(self):
        self.calls = []

    def names(self):
        return [c[0] for c in self.calls]

    def room_created(self, sid, room):
        self.calls.append(('room_created', sid, room))

    def rooms_changed(self, rooms):
        self.calls.append(('rooms_changed', rooms))

    def enter_scope(self, sid, room_id):
        self.calls.append(('enter_scope', sid, room_id))

    def leave_scope(self, sid, room_id):
        self.calls.append(('leave_scope', sid, room_id))

    def game_started(self, session):
        self.calls.append(('game_started', session.room_id, session.current_turn_user_id))

    def state_changed(self, session):
        from cardclash.services.battle import player_view
        self.calls.append(('state_changed', {p.sid: player_view(session, p.sid) for p in session.players}))

    def game_ended(self, session, winner, reason):
        self.calls.append(('game_ended', session.room_id, winner, reason))


def make_cards(prefix, count=10, hp=50, attack=20, card_type='NORMAL', first_id=1):
    return [BattleCard(id=first_id + i, name=f'{prefix} {i}', hp=hp, attack=attack, type=card_type)
            for i in range(count)]


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import cardclash.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def catalog(flask_app):
    """Three users with decks built so that every battle plays out the same way.

    Alice's fighters knock out Bob's normal-type cards in one hit, Bob's cards
    barely scratch Alice's.
    """
    from cardclash.models import User, Card, Deck, DeckCard

    users = {}
    for name in ('alice', 'bob', 'mallory'):
        user = User(username=name, email=f'{name}@example.com')
        user.set_password('password123')
        db.session.add(user)
        users[name] = user
    db.session.flush()

    def build_deck(owner, label, size, hp, attack, card_type):
        deck = Deck(name=f'{label} deck', user_id=owner.id)
        for i in range(size):
            card = Card(name=f'{label} {i}', hp=hp, attack=attack, type=card_type)
            db.session.add(card)
            deck.cards.append(DeckCard(card=card))
        db.session.add(deck)
        return deck

    decks = {
        'alice': build_deck(users['alice'], 'Machop', 10, hp=80, attack=40, card_type='FIGHTING'),
        'bob': build_deck(users['bob'], 'Snorlax', 10, hp=60, attack=10, card_type='NORMAL'),
        'short': build_deck(users['mallory'], 'Pidgey', 9, hp=40, attack=45, card_type='FLYING'),
        'mallory': build_deck(users['mallory'], 'Zubat', 10, hp=40, attack=45, card_type='POISON'),
    }
    db.session.commit()
    return {
        'users': {k: {'id': u.id, 'email': u.email} for k, u in users.items()},
        'decks': {k: d.id for k, d in decks.items()},
    }


@pytest.fixture()
def token_for(flask_app, catalog):
    def _token(name):
        user = catalog['users'][name]
        return issue_token(user['id'], user['email'], flask_app.config['JWT_SECRET'])
    return _token


@pytest.fixture()
def connect(flask_app, token_for):
    """Open an authenticated Socket.IO test client for a seeded user."""
    opened = []

    def _connect(name):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            auth={'token': token_for(name)},
        )
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
