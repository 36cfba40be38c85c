import logging

from flask import Flask, current_app, request
from flask_socketio import SocketIO

from broadcast import Broadcaster
from config import Config, RoomSettings
from errors import JoinError
from game import GameService
from registry import RoomRegistry

logger = logging.getLogger(__name__)

socketio = SocketIO()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    debug_socketio = app.config.get('LOG_LEVEL') == 'DEBUG'
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['CORS_ALLOWED_ORIGINS'],
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE'),
        logger=debug_socketio,
        engineio_logger=debug_socketio,
        ping_timeout=60,
        ping_interval=25,
    )

    settings = RoomSettings.from_config(app.config)
    registry = RoomRegistry(settings)
    app.extensions['game'] = GameService(
        registry,
        Broadcaster(socketio),
        settings,
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
    )

    @app.route('/health')
    def health():
        return {'status': 'ok', **registry.stats()}

    logger.info("Thumb war server configured: %sx%s arena, radius %s, %ss to win, %d Hz",
                settings.width, settings.height, settings.radius, settings.win_pin_seconds, settings.tick_rate)
    return app


def _game():
    return current_app.extensions['game']


# Socket events
@socketio.on('connect')
def handle_connect(auth=None):
    logger.debug("Client connected: %s", request.sid)


@socketio.on('disconnect')
def handle_disconnect(*args):
    logger.debug("Client disconnected: %s", request.sid)
    _game().leave(request.sid)


@socketio.on('join_room')
@socketio.on('joinRoom')
def handle_join_room(payload=None, options=None):
    # Accepts {"code", "avatar"} or the browser client's (code, {"thumbFile"})
    if isinstance(payload, dict):
        code = payload.get('code')
        avatar = payload.get('avatar')
    else:
        code = payload
        avatar = options.get('thumbFile') if isinstance(options, dict) else None

    # The return value is the Socket.IO ack, so it reaches the joiner after
    # the lobby broadcast that join() emits under the room lock
    try:
        return _game().join(request.sid, code, avatar=avatar)
    except JoinError as e:
        return {'ok': False, 'error': str(e)}


@socketio.on('input')
def handle_input(data=None):
    if isinstance(data, dict) and 'acting' not in data and 'pressing' in data:
        data = {**data, 'acting': data['pressing']}
    _game().handle_input(request.sid, data)


def main():
    app = create_app()
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Thumb war server (3 players) running on http://%s:%s", app.config['HOST'], app.config['PORT'])
    run_kwargs = {'allow_unsafe_werkzeug': True} if socketio.async_mode == 'threading' else {}
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], **run_kwargs)


if __name__ == '__main__':
    main()
