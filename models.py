import threading
from dataclasses import dataclass

ROLES = ('P1', 'P2', 'P3')
DEFAULT_AVATAR = 'thumb1.png'


@dataclass
class Player:
    sid: str
    role: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    acting: bool = False
    pin_timer: float = 0.0
    avatar: str = DEFAULT_AVATAR
    dominant: bool = False


class Room:
    def __init__(self, code, settings):
        self.code = code
        self.width = settings.width
        self.height = settings.height
        self.radius = settings.radius
        self.win_pin_seconds = settings.win_pin_seconds
        self.players = {}  # {sid: Player}, join order
        self.winner = None
        self.running = False
        # Bumped on every start/stop so a stale loop can tell it was replaced
        self.loop_generation = 0
        self.closed = False
        self.lock = threading.RLock()

    @property
    def config(self):
        return {
            'width': self.width,
            'height': self.height,
            'radius': self.radius,
            'win_pin_seconds': self.win_pin_seconds,
        }

    def spawn_point(self, role):
        fractions = {'P1': 0.2, 'P2': 0.5, 'P3': 0.8}
        return self.width * fractions[role], self.height * 0.5

    def __repr__(self):
        return f"<Room {self.code} players={len(self.players)} winner={self.winner} running={self.running}>"
