from typing import Optional

VALID_KEYS = ('A', 'B')


class AlternationCounter:
    """Counts A/B alternations during an active round.

    The first accepted press only sets the baseline key. Each later press of
    the other key scores one point; repeats, other keys and presses outside an
    active round are ignored.
    """

    def __init__(self) -> None:
        self.active = False
        self.reset()

    def reset(self) -> None:
        self.last_key: Optional[str] = None
        self.score = 0

    def press(self, key) -> bool:
        """Feed one key press. Returns True only when the score went up."""
        if not self.active or not isinstance(key, str):
            return False
        key = key.upper()
        if key not in VALID_KEYS:
            return False
        if self.last_key is None:
            self.last_key = key
            return False
        if key == self.last_key:
            return False
        self.score += 1
        self.last_key = key
        return True
