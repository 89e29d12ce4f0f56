import math
from typing import Dict, Optional

ELEMENT_TYPES = (
    'NORMAL', 'FIRE', 'WATER', 'ELECTRIC', 'GRASS', 'ICE',
    'FIGHTING', 'POISON', 'GROUND', 'FLYING', 'PSYCHIC', 'BUG',
    'ROCK', 'GHOST', 'DRAGON', 'DARK', 'STEEL', 'FAIRY',
)

DEFAULT_MULTIPLIERS: Dict[str, float] = {
    'super_effective': 2.0,
    'not_very_effective': 0.5,
    'neutral': 1.0,
}

# attacker type -> defender types it hits for double damage
SUPER_EFFECTIVE = {
    'FIRE': {'GRASS', 'ICE', 'BUG', 'STEEL'},
    'WATER': {'FIRE', 'GROUND', 'ROCK'},
    'ELECTRIC': {'WATER', 'FLYING'},
    'GRASS': {'WATER', 'GROUND', 'ROCK'},
    'ICE': {'GRASS', 'GROUND', 'FLYING', 'DRAGON'},
    'FIGHTING': {'NORMAL', 'ICE', 'ROCK', 'DARK', 'STEEL'},
    'POISON': {'GRASS', 'FAIRY'},
    'GROUND': {'FIRE', 'ELECTRIC', 'POISON', 'ROCK', 'STEEL'},
    'FLYING': {'GRASS', 'FIGHTING', 'BUG'},
    'PSYCHIC': {'FIGHTING', 'POISON'},
    'BUG': {'GRASS', 'PSYCHIC', 'DARK'},
    'ROCK': {'FIRE', 'ICE', 'FLYING', 'BUG'},
    'GHOST': {'PSYCHIC', 'GHOST'},
    'DRAGON': {'DRAGON'},
    'DARK': {'PSYCHIC', 'GHOST'},
    'STEEL': {'ICE', 'ROCK', 'FAIRY'},
    'FAIRY': {'FIGHTING', 'DRAGON', 'DARK'},
}

# Immunities of the classic chart are folded in here: there is no zero-damage tier.
NOT_VERY_EFFECTIVE = {
    'NORMAL': {'ROCK', 'STEEL', 'GHOST'},
    'FIRE': {'FIRE', 'WATER', 'ROCK', 'DRAGON'},
    'WATER': {'WATER', 'GRASS', 'DRAGON'},
    'ELECTRIC': {'ELECTRIC', 'GRASS', 'DRAGON', 'GROUND'},
    'GRASS': {'FIRE', 'GRASS', 'POISON', 'FLYING', 'BUG', 'DRAGON', 'STEEL'},
    'ICE': {'FIRE', 'WATER', 'ICE', 'STEEL'},
    'FIGHTING': {'POISON', 'FLYING', 'PSYCHIC', 'BUG', 'FAIRY', 'GHOST'},
    'POISON': {'POISON', 'GROUND', 'ROCK', 'GHOST', 'STEEL'},
    'GROUND': {'GRASS', 'BUG', 'FLYING'},
    'FLYING': {'ELECTRIC', 'ROCK', 'STEEL'},
    'PSYCHIC': {'PSYCHIC', 'STEEL', 'DARK'},
    'BUG': {'FIRE', 'FIGHTING', 'POISON', 'FLYING', 'GHOST', 'STEEL', 'FAIRY'},
    'ROCK': {'FIGHTING', 'GROUND', 'STEEL'},
    'GHOST': {'DARK', 'NORMAL'},
    'DRAGON': {'STEEL', 'FAIRY'},
    'DARK': {'FIGHTING', 'DARK', 'FAIRY'},
    'STEEL': {'FIRE', 'WATER', 'ELECTRIC', 'STEEL'},
    'FAIRY': {'FIRE', 'POISON', 'STEEL'},
}


def _normalize(element_type: Optional[str]) -> str:
    return (element_type or '').strip().upper()


def effectiveness(attacker_type: Optional[str], defender_type: Optional[str]) -> str:
    """Classify a matchup as 'super_effective', 'not_very_effective' or 'neutral'."""
    attacker = _normalize(attacker_type)
    defender = _normalize(defender_type)
    if defender in SUPER_EFFECTIVE.get(attacker, ()):
        return 'super_effective'
    if defender in NOT_VERY_EFFECTIVE.get(attacker, ()):
        return 'not_very_effective'
    return 'neutral'


def calculate_damage(attack: int, attacker_type: Optional[str], defender_type: Optional[str],
                     multipliers: Optional[Dict[str, float]] = None) -> int:
    """Damage dealt by an attack of the given power.

    The base attack is scaled by the matchup multiplier and rounded down.
    Unknown types fall back to neutral. The result is never negative.
    """
    table = multipliers or DEFAULT_MULTIPLIERS
    factor = table.get(effectiveness(attacker_type, defender_type), 1.0)
    return max(0, int(math.floor(int(attack) * factor)))
