import logging
import threading
from typing import Callable, Optional

from abgame.errors import GameError, InvalidTransition, ValidationError
from .counter import AlternationCounter
from .timer import RoundTimer

logger = logging.getLogger(__name__)

LOGGED_OUT = 'logged_out'
ROUND1_READY = 'round1_ready'
ROUND1_ACTIVE = 'round1_active'
ROUND1_DONE = 'round1_done'
ROUND2_READY = 'round2_ready'
ROUND2_ACTIVE = 'round2_active'
ROUND2_DONE = 'round2_done'
SUBMITTED = 'submitted'

ACTIVE_STATES = (ROUND1_ACTIVE, ROUND2_ACTIVE)
DONE_STATES = (ROUND1_DONE, ROUND2_DONE)


class GameSession:
    """One player's run through both rounds.

    Pipeline: logged_out -> round1_ready -> round1_active -> round1_done ->
    round2_ready -> round2_active -> round2_done -> submitted

    - Transitions only move forward; a finished round cannot be replayed
    - ``expire`` is fired by the timer, every other event by the player
    - Captured round scores are never overwritten
    - Saving twice creates at most one leaderboard entry
    """

    def __init__(
        self,
        scheduler,
        duration: int = 15,
        on_change: Optional[Callable[['GameSession', str], None]] = None,
        on_tick: Optional[Callable[['GameSession', int], None]] = None,
    ):
        self._lock = threading.RLock()
        self.state = LOGGED_OUT
        self.player_name: Optional[str] = None
        self.round1_score: Optional[int] = None
        self.round2_score: Optional[int] = None
        self.saved_entry: Optional[dict] = None
        self.last_error: Optional[str] = None
        self.on_change = on_change
        self.on_tick = on_tick
        self.counter = AlternationCounter()
        self.timer = RoundTimer(
            scheduler,
            duration=duration,
            on_tick=self._handle_tick,
            on_expire=self._handle_expire,
            lock=self._lock,
        )
        self._transitions = {
            (LOGGED_OUT, 'login'): self._login,
            (ROUND1_READY, 'start'): self._start_round,
            (ROUND1_ACTIVE, 'expire'): self._finish_round,
            (ROUND1_DONE, 'continue'): self._continue,
            (ROUND2_READY, 'start'): self._start_round,
            (ROUND2_ACTIVE, 'expire'): self._finish_round,
            (ROUND2_DONE, 'save'): self._save,
            (SUBMITTED, 'save'): self._save_again,
        }

    # ---- dispatch ----

    def dispatch(self, event: str, **payload):
        """Apply ``event`` to the current state and return the handler's result."""
        with self._lock:
            handler = self._transitions.get((self.state, event))
            if handler is None:
                raise InvalidTransition(self.state, event)
            previous = self.state
            result = handler(**payload)
            if self.state != previous:
                logger.info(f"[session] player={self.player_name!r} {previous} -> {self.state} on {event}")
                if self.on_change:
                    self.on_change(self, event)
            return result

    def login(self, name):
        return self.dispatch('login', name=name)

    def start_round(self):
        return self.dispatch('start')

    def continue_to_round2(self):
        return self.dispatch('continue')

    def save_score(self, submit: Callable[[dict], dict]):
        return self.dispatch('save', submit=submit)

    def press_key(self, key) -> bool:
        """Returns True when the press changed the score or the baseline key."""
        with self._lock:
            before = (self.counter.score, self.counter.last_key)
            self.counter.press(key)
            return (self.counter.score, self.counter.last_key) != before

    def close(self) -> None:
        """Abandon the session; no tick can fire afterwards."""
        with self._lock:
            self.timer.stop()
            self.counter.active = False

    # ---- derived values ----

    @property
    def current_round(self) -> int:
        return 1 if self.state in (LOGGED_OUT, ROUND1_READY, ROUND1_ACTIVE, ROUND1_DONE) else 2

    @property
    def delta(self) -> Optional[int]:
        if self.round1_score is None or self.round2_score is None:
            return None
        return self.round2_score - self.round1_score

    @property
    def effort(self) -> Optional[str]:
        delta = self.delta
        if delta is None:
            return None
        return 'increased' if delta >= 0 else 'decreased'

    def snapshot(self) -> dict:
        with self._lock:
            return {
                'state': self.state,
                'playerName': self.player_name,
                'currentRound': self.current_round,
                'isRoundActive': self.state in ACTIVE_STATES,
                'timeRemaining': self.timer.remaining,
                'score': self.counter.score,
                'lastKey': self.counter.last_key,
                'round1Score': self.round1_score,
                'round2Score': self.round2_score,
                'delta': self.delta,
                'effort': self.effort,
                'roundComplete': self.state in DONE_STATES or self.state == SUBMITTED,
                'scoreSaved': self.state == SUBMITTED,
                'lastError': self.last_error,
            }

    # ---- transition handlers ----

    def _login(self, name):
        cleaned = name.strip() if isinstance(name, str) else ''
        if not cleaned:
            raise ValidationError('Player name is required', 'Please enter your name')
        self.player_name = cleaned
        self.state = ROUND1_READY

    def _start_round(self):
        self.counter.reset()
        self.counter.active = True
        self.timer.start()
        self.state = ROUND1_ACTIVE if self.state == ROUND1_READY else ROUND2_ACTIVE

    def _finish_round(self):
        self.counter.active = False
        if self.state == ROUND1_ACTIVE:
            self.round1_score = self.counter.score
            self.state = ROUND1_DONE
        else:
            self.round2_score = self.counter.score
            self.state = ROUND2_DONE

    def _continue(self):
        self.counter.reset()
        self.timer.reset()
        self.state = ROUND2_READY

    def _save(self, submit):
        payload = {
            'name': self.player_name,
            'round1Score': self.round1_score,
            'round2Score': self.round2_score,
        }
        try:
            entry = submit(payload)
        except GameError as exc:
            self.last_error = exc.user_message
            logger.warning(f"[session] save failed for player={self.player_name!r}: {exc}")
            raise
        self.last_error = None
        self.saved_entry = entry
        self.state = SUBMITTED
        return entry

    def _save_again(self, submit):
        return None

    # ---- timer callbacks (run under self._lock) ----

    def _handle_tick(self, remaining: int) -> None:
        if self.on_tick:
            self.on_tick(self, remaining)

    def _handle_expire(self) -> None:
        self.dispatch('expire')
