from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from launch_control.main import main
    flask_app.register_blueprint(main)

    from launch_control.api.launch import launch
    flask_app.register_blueprint(launch, url_prefix='/api/launch')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from launch_control.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Ensure models are registered before any create_all
    from launch_control import models  # noqa: F401

    @click.command('init-db')
    def init_db_command():
        """Creates the record table if it does not exist."""
        with flask_app.app_context():
            db.create_all()
            print('Database tables created.')

    @click.command('reset-records')
    def reset_records_command():
        """Deletes every stored best score."""
        from launch_control.models import RecordEntry
        with flask_app.app_context():
            deleted = RecordEntry.query.delete()
            db.session.commit()
            print(f'Removed {deleted} record(s).')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(reset_records_command)

    return flask_app
