from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Leaderboard storage must be usable before any request is accepted;
    # initialization errors propagate and abort startup.
    from abgame.errors import StorageUnavailable
    from abgame.services.leaderboard import build_store
    store = build_store(flask_app.config)
    with flask_app.app_context():
        import abgame.models  # noqa: F401
        store.initialize()
    flask_app.extensions['leaderboard_store'] = store
    flask_app.logger.info(f"[startup] leaderboard backend={flask_app.config.get('LEADERBOARD_BACKEND')}")

    from abgame.main import main
    flask_app.register_blueprint(main)

    from abgame.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    from abgame.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app)

    @click.command('leaderboard-list')
    def leaderboard_list_command():
        """Prints the leaderboard, highest delta first."""
        try:
            with flask_app.app_context():
                entries = store.list_entries()
        except StorageUnavailable as exc:
            flask_app.logger.error(f"[leaderboard-list] {exc}")
            raise click.ClickException(exc.user_message)
        if not entries:
            click.echo('Leaderboard is empty.')
            return
        for rank, entry in enumerate(entries, start=1):
            sign = '+' if entry['delta'] >= 0 else ''
            click.echo(
                f"{rank:>3}. {entry['name']:<20} R1={entry['round1Score']:<4} "
                f"R2={entry['round2Score']:<4} delta={sign}{entry['delta']}"
            )

    flask_app.cli.add_command(leaderboard_list_command)

    return flask_app
