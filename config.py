import os
from dataclasses import dataclass


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'thumb-war-dev-key'
    # Arena defaults used when a room is created
    ARENA_WIDTH = float(os.environ.get('ARENA_WIDTH', '800'))
    ARENA_HEIGHT = float(os.environ.get('ARENA_HEIGHT', '500'))
    TOKEN_RADIUS = float(os.environ.get('TOKEN_RADIUS', '30'))
    WIN_PIN_SECONDS = float(os.environ.get('WIN_PIN_SECONDS', '2.0'))
    # Simulation
    TICK_RATE = int(os.environ.get('TICK_RATE', '60'))
    MOVE_SPEED = float(os.environ.get('MOVE_SPEED', '3.2'))
    # Transport
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # None lets Flask-SocketIO pick eventlet, gevent or threading
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None


@dataclass(frozen=True)
class RoomSettings:
    width: float = 800.0
    height: float = 500.0
    radius: float = 30.0
    win_pin_seconds: float = 2.0
    tick_rate: int = 60
    move_speed: float = 3.2

    @property
    def dt(self) -> float:
        return 1.0 / self.tick_rate

    @classmethod
    def from_config(cls, config) -> 'RoomSettings':
        return cls(
            width=float(config['ARENA_WIDTH']),
            height=float(config['ARENA_HEIGHT']),
            radius=float(config['TOKEN_RADIUS']),
            win_pin_seconds=float(config['WIN_PIN_SECONDS']),
            tick_rate=int(config['TICK_RATE']),
            move_speed=float(config['MOVE_SPEED']),
        )
