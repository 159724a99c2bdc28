from datetime import datetime, timezone

from abgame import db


def isoformat_utc(dt: datetime) -> str:
    """Millisecond ISO-8601 in UTC with a trailing 'Z'."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard_entry'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    round1_score = db.Column(db.Integer, nullable=False)
    round2_score = db.Column(db.Integer, nullable=False)
    # Stored at creation, never recomputed
    delta = db.Column(db.Integer, nullable=False, index=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'round1Score': self.round1_score,
            'round2Score': self.round2_score,
            'delta': self.delta,
            'timestamp': isoformat_utc(self.timestamp),
        }
