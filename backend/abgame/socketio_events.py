from flask import current_app, request
from flask_socketio import emit
from typing import Dict

from abgame import socketio
from abgame.errors import GameError
from abgame.services.games import BackgroundScheduler, GameSession, ManualScheduler
from abgame.services.leaderboard import get_store

NAMESPACE = '/ws'

# One live game per socket connection; dropped on disconnect (never persisted)
_sessions: Dict[str, GameSession] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _build_session(sid: str) -> GameSession:
    app = current_app._get_current_object()

    def _on_change(session: GameSession, event: str) -> None:
        payload = session.snapshot()
        # May run on the timer's background task, so use socketio.emit
        socketio.emit('state_update', payload, to=sid, namespace=NAMESPACE)
        if event == 'expire':
            app.logger.info(
                f"[round-complete] sid={sid} player={session.player_name!r} round={session.current_round} score={payload['score']}"
            )
            socketio.emit('round_complete', payload, to=sid, namespace=NAMESPACE)

    def _on_tick(session: GameSession, remaining: int) -> None:
        socketio.emit('tick', {'timeRemaining': remaining}, to=sid, namespace=NAMESPACE)

    return GameSession(
        app.extensions['timer_scheduler'],
        duration=int(app.config.get('ROUND_DURATION_SEC', 15)),
        on_change=_on_change,
        on_tick=_on_tick,
    )


def _current_session() -> GameSession:
    sid = _get_sid()
    session = _sessions.get(sid)
    if session is None:
        session = _sessions[sid] = _build_session(sid)
    return session


def _run_action(name: str, action):
    """Run a session action and report game errors back to the sender."""
    try:
        return action(_current_session())
    except GameError as exc:
        current_app.logger.info(f"[{name}] sid={_get_sid()} rejected: {exc}")
        emit('error', {'message': exc.user_message, 'action': name})
        return None


def handle_connect(auth=None):
    _current_session()
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    session = _sessions.pop(_get_sid(), None)
    if session is not None:
        session.close()


def handle_login(data=None):
    name = (data or {}).get('name')
    _run_action('login', lambda s: s.login(name))


def handle_start_round(data=None):
    _run_action('start_round', lambda s: s.start_round())


def handle_continue(data=None):
    _run_action('continue', lambda s: s.continue_to_round2())


def handle_key_press(data=None):
    key = (data or {}).get('key')
    session = _current_session()
    if session.press_key(key):
        emit('state_update', session.snapshot())


def handle_save_score(data=None):
    store = get_store()
    session = _current_session()
    try:
        entry = session.save_score(store.submit)
    except GameError as exc:
        current_app.logger.warning(f"[save_score] sid={_get_sid()} failed: {exc}")
        emit('error', {'message': exc.user_message, 'action': 'save_score'})
        emit('state_update', session.snapshot())
        return
    if entry is not None:
        current_app.logger.info(f"[save_score] sid={_get_sid()} entry={entry['id']} delta={entry['delta']}")
        emit('score_saved', {'entry': entry})


def handle_get_state(data=None):
    emit('state_update', _current_session().snapshot())


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(app) -> None:
    """Register Socket.IO event handlers on namespace '/ws' and attach the
    round timer scheduler selected by TIMER_MODE.
    """
    if app.config.get('TIMER_MODE') == 'manual':
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio.start_background_task, socketio.sleep)
    app.extensions['timer_scheduler'] = scheduler

    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('login', handle_login, namespace=NAMESPACE)
    socketio.on_event('start_round', handle_start_round, namespace=NAMESPACE)
    socketio.on_event('key_press', handle_key_press, namespace=NAMESPACE)
    socketio.on_event('continue', handle_continue, namespace=NAMESPACE)
    socketio.on_event('save_score', handle_save_score, namespace=NAMESPACE)
    socketio.on_event('get_state', handle_get_state, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
