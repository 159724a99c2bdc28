import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    PORT = int(os.environ.get('PORT', '3000'))
    # Round length (seconds); both rounds use the same countdown
    ROUND_DURATION_SEC = 15
    # Leaderboard persistence: 'file' (JSON array on disk) or 'sql'
    LEADERBOARD_BACKEND = 'file'
    LEADERBOARD_FILE = os.path.join(basedir, 'leaderboard.json')
    SQLALCHEMY_DATABASE_URI = 'sqlite:///' + os.path.join(basedir, 'leaderboard.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # 'background' runs wall-clock ticks on a Socket.IO task; 'manual' ticks only when advanced
    TIMER_MODE = 'background'
