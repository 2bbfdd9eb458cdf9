import threading
import time

import pytest

from pong_server.dispatcher import POOL_EXHAUSTED, Dispatcher
from pong_server.protocol import GetCtx, GetId, Hello, Ready, SetCtx, Unknown
from pong_server.sessions import SessionRegistry


class Outbox:
    """Collects what the dispatcher sends on one connection."""

    def __init__(self):
        self.sent = []

    def __call__(self, payload):
        self.sent.append(payload)


@pytest.fixture()
def dispatcher(registry, directory):
    return Dispatcher(registry, directory)


def _join(dispatcher, conn):
    out = Outbox()
    dispatcher.dispatch(GetId(), conn, out)
    reply = out.sent[-1]
    return reply['session'], reply['id']


def test_get_id_replies_and_binds(dispatcher, directory):
    out = Outbox()
    dispatcher.dispatch(GetId(), 'a', out)
    assert len(out.sent) == 1
    reply = out.sent[0]
    assert reply['type'] == 'SetId'
    binding = directory.get('a')
    assert (binding.player_id, binding.session_id) == (reply['id'], reply['session'])


def test_get_id_when_full_sends_sentinels_and_error(dispatcher, directory):
    _join(dispatcher, 'a')
    _join(dispatcher, 'b')
    out = Outbox()
    dispatcher.dispatch(GetId(), 'c', out)
    assert out.sent == [{'type': 'SetId', 'id': 0xFFFFFFFF, 'session': 0xFFFFFFFF, 'error': POOL_EXHAUSTED}]
    assert directory.get('c') is None


def test_second_get_id_on_same_connection_releases_first(dispatcher, registry, directory):
    session, first = _join(dispatcher, 'a')
    _join(dispatcher, 'b')
    session_again, second = _join(dispatcher, 'a')
    # The freed left side is handed straight back
    assert (session_again, second) == (session, first)
    assert len(directory) == 2


def test_one_way_kinds_never_reply(dispatcher, registry):
    session, left = _join(dispatcher, 'a')
    out = Outbox()
    dispatcher.dispatch(Hello('hi'), 'a', out)
    dispatcher.dispatch(Ready(session, left), 'a', out)
    dispatcher.dispatch(SetCtx(session, left_pos=300), 'a', out)
    dispatcher.dispatch(Unknown('Bogus'), 'a', out)
    assert out.sent == []
    assert registry.get_session(session).player_left_pos == 300


def test_unknown_session_references_are_dropped(dispatcher):
    session, left = _join(dispatcher, 'a')
    stale = session ^ 1
    out = Outbox()
    dispatcher.dispatch(GetCtx(stale), 'a', out)
    dispatcher.dispatch(SetCtx(stale, left_pos=1), 'a', out)
    dispatcher.dispatch(Ready(stale, left), 'a', out)
    assert out.sent == []


def test_ready_with_invalid_player_is_ignored(dispatcher, registry):
    session, left = _join(dispatcher, 'a')
    dispatcher.dispatch(Ready(session, 12345), 'a', Outbox())
    snap = registry.get_session(session)
    assert not snap.player_left_ready and not snap.player_right_ready


def test_ball_handoff_through_messages(dispatcher):
    session, left = _join(dispatcher, 'a')
    _, right = _join(dispatcher, 'b')
    dispatcher.dispatch(Ready(session, right), 'b', Outbox())
    dispatcher.dispatch(Ready(session, left), 'a', Outbox())

    out = Outbox()
    dispatcher.dispatch(GetCtx(session), 'a', out)
    ctx = out.sent[-1]
    assert (ctx['ball_vx'], ctx['ball_vy'], ctx['ball_master_id']) == (5, 5, right)
    assert ctx['ball_posx'] == 0x7FFFFFFF

    dispatcher.dispatch(SetCtx(session, ball_vx=-3, ball_vy=2, ball_posx=600, ball_posy=300), 'b', Outbox())
    dispatcher.dispatch(GetCtx(session), 'a', out)
    assert out.sent[-1]['ball_master_id'] == left

    dispatcher.dispatch(SetCtx(session, ball_vx=3, ball_vy=2, ball_posx=40, ball_posy=300), 'a', Outbox())
    dispatcher.dispatch(GetCtx(session), 'a', out)
    assert out.sent[-1]['ball_master_id'] == right
    assert out.sent[-1]['ball_posx'] == 40


def test_disconnect_releases_binding(dispatcher, registry, directory):
    session, left = _join(dispatcher, 'a')
    _, right = _join(dispatcher, 'b')
    dispatcher.disconnect('a')
    assert directory.get('a') is None
    snap = registry.get_session(session)
    assert snap.player_left_id is None
    assert snap.player_right_id == right
    # Unbound connection: nothing to do
    dispatcher.disconnect('never-joined')


def test_send_failure_is_swallowed(dispatcher, directory):
    def _broken(payload):
        raise ConnectionError('socket gone')

    dispatcher.dispatch(GetId(), 'a', _broken)
    # Seat and binding are kept even though the reply was lost
    assert directory.get('a') is not None


class _SlowRegistry(SessionRegistry):
    """Stalls inside seat assignment to widen any gap between steps."""

    def get_or_create_session_and_assign_player(self):
        time.sleep(0.05)
        return super().get_or_create_session_and_assign_player()


def test_concurrent_get_id_on_one_connection_leaves_no_orphan_seat(directory):
    registry = _SlowRegistry(capacity=1)
    dispatcher = Dispatcher(registry, directory)
    start = threading.Barrier(2)

    def _get_id():
        start.wait()
        dispatcher.dispatch(GetId(), 'conn', Outbox())

    threads = [threading.Thread(target=_get_id) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # The connection holds exactly one seat, so closing it empties the pool
    assert len(directory) == 1
    dispatcher.disconnect('conn')
    assert registry.snapshot() == []
    assert len(directory) == 0


def test_disconnect_racing_get_id_frees_the_seat(directory):
    registry = _SlowRegistry(capacity=1)
    dispatcher = Dispatcher(registry, directory)
    joining = threading.Thread(target=dispatcher.dispatch, args=(GetId(), 'conn', Outbox()))
    joining.start()
    time.sleep(0.01)
    dispatcher.disconnect('conn')
    joining.join()
    # A GetId that lands after the disconnect leaves a bound seat, never an
    # unbound one
    if directory.get('conn') is not None:
        dispatcher.disconnect('conn')
    assert registry.snapshot() == []
