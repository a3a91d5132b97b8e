from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from sudoku_api.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Import and register blueprints here
    from sudoku_api.auth import auth
    from sudoku_api.api.games import games
    from sudoku_api.api.groups import groups
    from sudoku_api.api.challenges import challenges
    from sudoku_api.api.matches import matches
    flask_app.register_blueprint(auth, url_prefix='/api/sudoku')
    flask_app.register_blueprint(games, url_prefix='/api/sudoku')
    flask_app.register_blueprint(groups, url_prefix='/api/sudoku/groups')
    flask_app.register_blueprint(challenges, url_prefix='/api/sudoku/challenges')
    flask_app.register_blueprint(matches, url_prefix='/api/sudoku/matches')

    # Bind Socket.IO handlers to the initialized socketio instance
    from sudoku_api.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Flask-Login user loader
    from sudoku_api.models import Player

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(Player, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed players
            for name in ['player1', 'player2', 'player3']:
                player = Player(username=name, email=f'{name}@example.com')
                player.set_password('password')
                db.session.add(player)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
