import random
import threading

import pytest

from cardclash.errors import AuthorizationError, NotFoundError, ValidationError
from cardclash.services.battle import SessionManager
from conftest import make_cards

HOST, GUEST = 1, 2
ROOM = 7


@pytest.fixture()
def manager(notifier):
    mgr = SessionManager(notifier, rng=random.Random(42))
    mgr.start(
        ROOM,
        HOST, 'sid-host', make_cards('Machop', hp=80, attack=40, card_type='FIGHTING', first_id=1),
        GUEST, 'sid-guest', make_cards('Snorlax', hp=60, attack=10, card_type='NORMAL', first_id=101),
    )
    return mgr


def _assert_invariants(session):
    assert len(session.players) == 2
    for p in session.players:
        assert 0 <= p.score < 3
        assert len(p.hand) <= 5
        assert p.card_count() == 10


def _ready_both(manager):
    manager.draw_cards(ROOM, HOST)
    manager.play_card(ROOM, HOST, 0)
    manager.end_turn(ROOM, HOST)
    manager.draw_cards(ROOM, GUEST)
    manager.play_card(ROOM, GUEST, 0)
    manager.end_turn(ROOM, GUEST)


def test_start_deals_shuffled_piles_and_host_moves_first(manager, notifier):
    session = manager.snapshot(ROOM)
    assert session.current_turn_user_id == HOST
    assert [p.user_id for p in session.players] == [HOST, GUEST]
    assert all(p.hand == [] and p.active_card is None for p in session.players)
    assert sorted(c.id for c in session.players[0].draw_pile) == list(range(1, 11))
    assert notifier.names() == ['game_started', 'state_changed']
    _assert_invariants(session)


def test_start_twice_in_same_room_fails(manager):
    with pytest.raises(ValidationError):
        manager.start(ROOM, 3, 'a', make_cards('x'), 4, 'b', make_cards('y'))


def test_draw_fills_hand_to_five(manager):
    manager.draw_cards(ROOM, HOST)
    host = manager.snapshot(ROOM).player(HOST)
    assert len(host.hand) == 5
    assert len(host.draw_pile) == 5


def test_draw_is_idempotent_once_hand_is_full(manager, notifier):
    manager.draw_cards(ROOM, HOST)
    first = manager.snapshot(ROOM)
    manager.draw_cards(ROOM, HOST)
    assert manager.snapshot(ROOM) == first
    assert notifier.calls[-1] == notifier.calls[-2]


def test_draw_stops_when_pile_is_empty(notifier):
    mgr = SessionManager(notifier, rng=random.Random(1))
    mgr.start(1, HOST, 'a', make_cards('Abra', count=3), GUEST, 'b', make_cards('Zubat', count=3, first_id=50))
    mgr.draw_cards(1, HOST)
    host = mgr.snapshot(1).player(HOST)
    assert len(host.hand) == 3
    assert host.draw_pile == []
    mgr.draw_cards(1, HOST)
    assert mgr.snapshot(1).player(HOST) == host


def test_play_card_moves_card_to_active(manager):
    manager.draw_cards(ROOM, HOST)
    chosen = manager.snapshot(ROOM).player(HOST).hand[2]
    manager.play_card(ROOM, HOST, 2)
    host = manager.snapshot(ROOM).player(HOST)
    assert host.active_card == chosen
    assert len(host.hand) == 4
    assert manager.snapshot(ROOM).current_turn_user_id == HOST


@pytest.mark.parametrize('index', [-1, 5, 99, '0', 1.0, True, None])
def test_play_card_rejects_bad_index(manager, index):
    manager.draw_cards(ROOM, HOST)
    before = manager.snapshot(ROOM)
    with pytest.raises(ValidationError):
        manager.play_card(ROOM, HOST, index)
    assert manager.snapshot(ROOM) == before


def test_play_card_rejects_second_active_card(manager):
    manager.draw_cards(ROOM, HOST)
    manager.play_card(ROOM, HOST, 0)
    with pytest.raises(ValidationError, match='already has an active card'):
        manager.play_card(ROOM, HOST, 0)


def test_actions_out_of_turn_change_nothing(manager, notifier):
    before = manager.snapshot(ROOM)
    calls = len(notifier.calls)
    for action in (manager.draw_cards, manager.attack, manager.end_turn):
        with pytest.raises(AuthorizationError):
            action(ROOM, GUEST)
    with pytest.raises(AuthorizationError):
        manager.play_card(ROOM, GUEST, 0)
    with pytest.raises(AuthorizationError):
        manager.draw_cards(ROOM, 999)
    assert manager.snapshot(ROOM) == before
    assert len(notifier.calls) == calls


def test_unknown_room_is_not_found(manager):
    with pytest.raises(NotFoundError):
        manager.draw_cards(12345, HOST)


def test_attack_requires_both_active_cards(manager):
    with pytest.raises(ValidationError, match='No active card'):
        manager.attack(ROOM, HOST)
    manager.draw_cards(ROOM, HOST)
    manager.play_card(ROOM, HOST, 0)
    with pytest.raises(ValidationError, match='Opponent has no active card'):
        manager.attack(ROOM, HOST)


def test_attack_without_kill_damages_and_passes_turn(manager):
    _ready_both(manager)
    manager.end_turn(ROOM, HOST)
    manager.attack(ROOM, GUEST)
    session = manager.snapshot(ROOM)
    host = session.player(HOST)
    assert host.active_card.hp == 70
    assert session.player(GUEST).score == 0
    assert session.current_turn_user_id == HOST
    _assert_invariants(session)


def test_knockout_discards_scores_and_passes_turn(manager):
    _ready_both(manager)
    manager.attack(ROOM, HOST)
    session = manager.snapshot(ROOM)
    guest = session.player(GUEST)
    assert guest.active_card is None
    assert len(guest.discard_pile) == 1
    assert guest.discard_pile[0].hp <= 0
    assert session.player(HOST).score == 1
    assert session.current_turn_user_id == GUEST
    _assert_invariants(session)


def test_third_knockout_ends_game_once(manager, notifier):
    _ready_both(manager)
    for round_no in range(3):
        if round_no:
            manager.play_card(ROOM, GUEST, 0)
            manager.end_turn(ROOM, GUEST)
        manager.attack(ROOM, HOST)

    ended = [c for c in notifier.calls if c[0] == 'game_ended']
    assert ended == [('game_ended', ROOM, HOST, 'victory')]
    assert notifier.calls[-1][0] == 'game_ended'
    assert ROOM not in manager
    assert manager.active_count() == 0
    for action in (manager.draw_cards, manager.attack, manager.end_turn):
        with pytest.raises(NotFoundError):
            action(ROOM, HOST)


def test_forfeit_awards_game_to_opponent(manager, notifier):
    assert manager.forfeit(GUEST) == [ROOM]
    assert notifier.calls[-1] == ('game_ended', ROOM, HOST, 'forfeit')
    assert manager.forfeit(GUEST) == []
    with pytest.raises(NotFoundError):
        manager.snapshot(ROOM)


def test_rebind_moves_seat_to_new_connection(manager, notifier):
    manager.draw_cards(ROOM, HOST)
    notifier.calls.clear()

    assert manager.rebind(HOST, 'sid-host-2') == [ROOM]
    assert notifier.calls[0] == ('enter_scope', 'sid-host-2', ROOM)
    views = notifier.calls[1][1]
    assert set(views) == {'sid-host-2', 'sid-guest'}
    assert len([c for c in views['sid-host-2']['players'][0]['hand'] if c is not None]) == 5
    assert manager.snapshot(ROOM).player(HOST).sid == 'sid-host-2'

    notifier.calls.clear()
    assert manager.rebind(HOST, 'sid-host-2') == []
    assert notifier.calls == []


def test_concurrent_attacks_resolve_once(manager, notifier):
    _ready_both(manager)
    errors = []
    barrier = threading.Barrier(4)

    def hit():
        barrier.wait()
        try:
            manager.attack(ROOM, HOST)
        except AuthorizationError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=hit) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    session = manager.snapshot(ROOM)
    assert session.player(HOST).score == 1
    assert len(errors) == 3
    _assert_invariants(session)


def test_snapshots_follow_turn_order(manager, notifier):
    _ready_both(manager)
    turns = [next(iter(c[1].values()))['currentPlayerUserId'] for c in notifier.calls if c[0] == 'state_changed']
    assert turns == [HOST, HOST, HOST, GUEST, GUEST, GUEST, HOST]
