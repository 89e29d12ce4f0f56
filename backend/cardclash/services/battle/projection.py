from typing import Any, Dict

from .state import GameSession


def player_view(session: GameSession, viewer_sid: str) -> Dict[str, Any]:
    """Build the snapshot of a session as seen from one connection.

    The viewer's own hand is listed card by card. The opponent's hand is a
    list of None placeholders of the same length, so only its size leaks.
    Active cards, scores, pile sizes and the turn owner are public.
    """
    players = []
    for p in session.players:
        if p.sid == viewer_sid:
            hand = [card.to_dict() for card in p.hand]
        else:
            hand = [None] * len(p.hand)
        players.append({
            'userId': p.user_id,
            'hand': hand,
            'handCount': len(p.hand),
            'drawPileCount': len(p.draw_pile),
            'activeCard': p.active_card.to_dict() if p.active_card else None,
            'score': p.score,
        })
    return {
        'roomId': session.room_id,
        'currentPlayerUserId': session.current_turn_user_id,
        'players': players,
    }
