from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # In-memory match state is owned by the app instance, never by module globals
    from cardclash.services.battle import DeckStore, MatchCoordinator
    from cardclash.socketio_events import SocketNotifier, register_socketio_handlers
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    flask_app.extensions['cardclash'] = MatchCoordinator(
        SocketNotifier(namespace),
        DeckStore(deck_size=flask_app.config.get('DECK_SIZE', 10)),
        hand_size=flask_app.config.get('HAND_SIZE', 5),
        winning_score=flask_app.config.get('WINNING_SCORE', 3),
        multipliers=flask_app.config.get('TYPE_MULTIPLIERS'),
    )
    register_socketio_handlers(namespace)

    from cardclash.main import main
    flask_app.register_blueprint(main)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from cardclash.models import seed_database
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            users = seed_database(deck_size=flask_app.config.get('DECK_SIZE', 10))
            print(f"Database has been reset and seeded! Users: {', '.join(u.email for u in users)}")

    @click.command('issue-token')
    @click.argument('email')
    def issue_token_command(email):
        """Prints a signed bearer token for an existing user."""
        from cardclash.models import User
        from cardclash.services.battle import issue_token
        with flask_app.app_context():
            user = User.query.filter_by(email=email).first()
            if not user:
                raise click.ClickException(f'No user with email {email}')
            cfg = flask_app.config
            print(issue_token(user.id, user.email, cfg['JWT_SECRET'], cfg.get('JWT_EXPIRES_SEC', 86400),
                              cfg.get('JWT_ALGORITHM', 'HS256')))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(issue_token_command)

    return flask_app
