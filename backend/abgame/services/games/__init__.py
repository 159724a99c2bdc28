"""Game domain services: alternation counting, round timing and the session
state machine.

Everything here is plain Python with no Flask or Socket.IO imports, so the
socket handlers and the tests drive the same objects. Transport concerns
live in ``abgame.socketio_events``.
"""

from .counter import AlternationCounter
from .timer import RoundTimer, BackgroundScheduler, ManualScheduler, ScheduledTask
from .session import GameSession

__all__ = [
    'AlternationCounter',
    'RoundTimer',
    'BackgroundScheduler',
    'ManualScheduler',
    'ScheduledTask',
    'GameSession',
]
