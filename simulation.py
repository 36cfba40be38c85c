import math
from itertools import combinations

CONTACT_FACTOR = 1.4
DECAY_FACTOR = 0.5


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def direction_velocity(data, speed):
    """Unit-or-zero direction from the four flags, scaled to per-step speed."""
    dx = (1 if data.get('right') else 0) - (1 if data.get('left') else 0)
    dy = (1 if data.get('down') else 0) - (1 if data.get('up') else 0)
    mag = math.hypot(dx, dy) or 1
    return dx / mag * speed, dy / mag * speed


def integrate(room):
    r = room.radius
    for p in room.players.values():
        p.x = clamp(p.x + p.vx, r, room.width - r)
        p.y = clamp(p.y + p.vy, r, room.height - r)


def _gain(player, dt, cap):
    player.pin_timer = min(cap, player.pin_timer + dt)


def _decay(player, dt):
    player.pin_timer = max(0.0, player.pin_timer - dt * DECAY_FACTOR)


def resolve_pins(room, dt):
    """Update pin timers for every unordered pair of players.

    A player in three-player rooms is touched once per pair it belongs to, so
    gains and decays from different opponents add up within a single step.
    """
    contact = room.radius * CONTACT_FACTOR
    cap = room.win_pin_seconds
    for a, b in combinations(list(room.players.values()), 2):
        if math.hypot(a.x - b.x, a.y - b.y) < contact:
            for p in (a, b):
                if p.dominant and p.acting:
                    _gain(p, dt, cap)
                else:
                    _decay(p, dt)
        else:
            _decay(a, dt)
            _decay(b, dt)


def find_winner(room):
    for p in room.players.values():
        if p.pin_timer >= room.win_pin_seconds:
            return p
    return None


def step(room, dt):
    """Advance one fixed step. Returns the role that just won, if any."""
    if len(room.players) < 2 or room.winner is not None:
        return None
    integrate(room)
    resolve_pins(room, dt)
    winner = find_winner(room)
    if winner is not None:
        room.winner = winner.role
        return winner.role
    return None
