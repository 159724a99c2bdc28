"""
Error types shared by the game session and the leaderboard store.
"""


class GameError(Exception):
    """Base error; ``user_message`` is safe to show to the player."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ValidationError(GameError):
    """Raised when a name or score submission is missing required fields."""
    def __init__(self, reason: str, user_message: str = None):
        super().__init__(reason, user_message or 'Missing required fields')


class StorageUnavailable(GameError):
    """Raised when the leaderboard cannot be read or written."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Leaderboard storage error during {operation}: {details}",
            f"Failed to {operation} scores",
        )
        self.operation = operation


class InvalidTransition(GameError):
    """Raised when a session action is not allowed in the current state."""
    def __init__(self, state: str, event: str):
        super().__init__(
            f"Cannot '{event}' while in state '{state}'",
            f"That action is not available right now ({state})",
        )
        self.state = state
        self.event = event
