from cardclash import db, bcrypt
from datetime import datetime
import random

class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    decks = db.relationship('Deck', back_populates='owner')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
        }

class Card(db.Model):
    __tablename__ = 'card'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    hp = db.Column(db.Integer, nullable=False)
    attack = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)  # one of damage.ELEMENT_TYPES
    pokedex_number = db.Column(db.Integer, nullable=True)
    img_url = db.Column(db.String(255), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'hp': self.hp,
            'attack': self.attack,
            'type': self.type,
            'pokedex_number': self.pokedex_number,
            'img_url': self.img_url,
        }

class Deck(db.Model):
    __tablename__ = 'deck'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    owner = db.relationship('User', back_populates='decks')
    # Ordered by insertion so a deck always loads in the order it was built
    cards = db.relationship('DeckCard', back_populates='deck', order_by='DeckCard.id',
                            cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'user_id': self.user_id,
            'cards': [dc.card.to_dict() for dc in self.cards],
        }

class DeckCard(db.Model):
    __tablename__ = 'deck_card'
    id = db.Column(db.Integer, primary_key=True)
    deck_id = db.Column(db.Integer, db.ForeignKey('deck.id'), nullable=False, index=True)
    card_id = db.Column(db.Integer, db.ForeignKey('card.id'), nullable=False)
    deck = db.relationship('Deck', back_populates='cards')
    card = db.relationship('Card')


SPRITE_URL = 'https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/other/official-artwork/{}.png'

# (name, pokedex number, hp, attack, type)
STARTER_CARDS = [
    ('Bulbasaur', 1, 45, 49, 'GRASS'),
    ('Charmander', 4, 39, 52, 'FIRE'),
    ('Squirtle', 7, 44, 48, 'WATER'),
    ('Pidgey', 16, 40, 45, 'FLYING'),
    ('Pikachu', 25, 35, 55, 'ELECTRIC'),
    ('Sandshrew', 27, 50, 75, 'GROUND'),
    ('Clefairy', 35, 70, 45, 'FAIRY'),
    ('Zubat', 41, 40, 45, 'POISON'),
    ('Abra', 63, 25, 20, 'PSYCHIC'),
    ('Machop', 66, 70, 80, 'FIGHTING'),
    ('Geodude', 74, 40, 80, 'ROCK'),
    ('Magnemite', 81, 25, 35, 'STEEL'),
    ('Gastly', 92, 30, 35, 'GHOST'),
    ('Caterpie', 10, 45, 30, 'BUG'),
    ('Jynx', 124, 65, 50, 'ICE'),
    ('Dratini', 147, 41, 64, 'DRAGON'),
    ('Snorlax', 143, 160, 110, 'NORMAL'),
    ('Umbreon', 197, 95, 65, 'DARK'),
]


def seed_database(deck_size=10, rng=None):
    """Create two demo users, the starter catalog and one random deck each."""
    rng = rng or random.Random()
    users = []
    for username in ('red', 'blue'):
        user = User(username=username, email=f'{username}@example.com')
        user.set_password('password123')
        db.session.add(user)
        users.append(user)

    cards = []
    for name, number, hp, attack, card_type in STARTER_CARDS:
        card = Card(name=name, pokedex_number=number, hp=hp, attack=attack, type=card_type,
                    img_url=SPRITE_URL.format(number))
        db.session.add(card)
        cards.append(card)
    db.session.flush()

    for user in users:
        deck = Deck(name='Starter Deck', user_id=user.id)
        for card in rng.sample(cards, deck_size):
            deck.cards.append(DeckCard(card_id=card.id))
        db.session.add(deck)

    db.session.commit()
    return users
