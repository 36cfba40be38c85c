import logging
import threading
import time
from contextlib import ExitStack

import simulation
from errors import CapacityError, ValidationError
from models import DEFAULT_AVATAR, Player
from registry import MAX_CODE_LENGTH, assign_role, normalize_code

logger = logging.getLogger(__name__)


class GameService:
    """Room sessions: membership, player input and the per-room tick loop.

    Every mutation of a room (join, leave, input, step) runs under that room's
    lock, so a step always completes, broadcast included, before anything else
    touches the room.
    """

    def __init__(self, registry, broadcaster, settings, start_task, sleep=time.sleep, clock=time.monotonic):
        self.registry = registry
        self.broadcaster = broadcaster
        self.settings = settings
        self._start_task = start_task
        self._sleep = sleep
        self._clock = clock
        self._player_rooms = {}  # {sid: room_code}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ session

    def join(self, sid, raw_code, avatar=None):
        code = normalize_code(raw_code)
        if not code or len(code) > MAX_CODE_LENGTH:
            raise ValidationError('Invalid room id')

        while True:
            room = self.registry.get_or_create(code)
            current_code = self.room_code_for(sid)
            current = None
            if current_code is not None and current_code != code:
                current = self.registry.get(current_code)

            # Both rooms stay locked until the seat is taken, in code order
            with ExitStack() as stack:
                for locked in sorted((r for r in (room, current) if r is not None), key=lambda r: r.code):
                    stack.enter_context(locked.lock)
                if room.closed:
                    # Emptied and discarded between lookup and lock; look again
                    continue
                if current_code == code and sid in room.players:
                    return self._reply(room, room.players[sid].role)

                role = assign_role(room)
                if role is None:
                    logger.info("Join refused, room %s is full (sid=%s)", code, sid)
                    raise CapacityError('Room is full')
                if current_code is not None:
                    self.leave(sid)

                x, y = room.spawn_point(role)
                room.players[sid] = Player(sid=sid, role=role, x=x, y=y, avatar=avatar or DEFAULT_AVATAR)
                with self._lock:
                    self._player_rooms[sid] = code
                self.broadcaster.enter(sid, code)
                logger.info("Player %s joined room %s as %s (%d players)", sid, code, role, len(room.players))

                reply = self._reply(room, role)
                self.broadcaster.lobby(room)
                if len(room.players) >= 2 and room.winner is None and not room.running:
                    self._start_loop(room)
                return reply

    @staticmethod
    def _reply(room, role):
        return {'ok': True, 'role': role, 'config': room.config}

    def leave(self, sid):
        with self._lock:
            code = self._player_rooms.pop(sid, None)
        if code is None:
            return
        room = self.registry.get(code)
        if room is None:
            return

        with room.lock:
            player = room.players.pop(sid, None)
            if player is None:
                return
            logger.info("Player %s (%s) left room %s (%d players)", sid, player.role, code, len(room.players))
            self.broadcaster.exit(sid, code)
            self.broadcaster.lobby(room)

            if len(room.players) < 2:
                if room.running:
                    self._stop_loop(room)
                room.winner = None
            if not room.players:
                self.registry.discard(room)

    def room_code_for(self, sid):
        with self._lock:
            return self._player_rooms.get(sid)

    # -------------------------------------------------------------------- input

    def handle_input(self, sid, data):
        if not isinstance(data, dict):
            return
        code = self.room_code_for(sid)
        room = self.registry.get(code) if code else None
        if room is None:
            logger.debug("Dropping input from unregistered sid %s", sid)
            return

        with room.lock:
            me = room.players.get(sid)
            if me is None or room.winner is not None:
                return
            me.vx, me.vy = simulation.direction_velocity(data, self.settings.move_speed)
            me.acting = bool(data.get('acting'))

            # Acting puts this player on top; only one player can be on top
            if me.acting:
                for p in room.players.values():
                    p.dominant = p is me
            else:
                me.dominant = False

    # --------------------------------------------------------------- tick loop

    def tick(self, code):
        """Run one step for a room right now. Returns the role that just won."""
        room = self.registry.get(code)
        if room is None:
            return None
        with room.lock:
            return self._step_locked(room)

    def _step_locked(self, room):
        if not room.running:
            return None
        won = simulation.step(room, self.settings.dt)
        if won is not None:
            self._stop_loop(room)
            logger.info("Room %s won by %s", room.code, won)
            self.broadcaster.end(room)
        self.broadcaster.state(room)
        return won

    def _start_loop(self, room):
        room.running = True
        room.loop_generation += 1
        for p in room.players.values():
            p.pin_timer = 0.0
        logger.info("Tick loop starting for room %s", room.code)
        self._start_task(self._run_loop, room, room.loop_generation)

    def _stop_loop(self, room):
        room.running = False
        room.loop_generation += 1
        logger.info("Tick loop stopping for room %s", room.code)

    def _run_loop(self, room, generation):
        interval = self.settings.dt
        next_at = self._clock()
        try:
            while True:
                with room.lock:
                    if room.loop_generation != generation or not room.running:
                        break
                    self._step_locked(room)
                next_at += interval
                delay = next_at - self._clock()
                if delay < 0:
                    # Fell behind; don't try to catch up with a burst of steps
                    next_at = self._clock()
                    delay = 0
                self._sleep(delay)
        except Exception:
            logger.exception("Tick loop crashed for room %s", room.code)
            with room.lock:
                if room.loop_generation == generation:
                    self._stop_loop(room)
