from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from pong_server.config import Config

# One handler at a time per connection: a message is fully handled before the next is read
socketio = SocketIO(async_mode=None, async_handlers=False)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; every connection of this process shares it
    from pong_server.dispatcher import Dispatcher
    from pong_server.sessions import ConnectionDirectory, SessionRegistry
    registry = SessionRegistry(capacity=int(flask_app.config.get('SESSION_POOL_CAPACITY', 1)))
    flask_app.extensions['pong'] = Dispatcher(registry, ConnectionDirectory(), logger=flask_app.logger)

    from pong_server.main import main
    flask_app.register_blueprint(main)

    from pong_server.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app
