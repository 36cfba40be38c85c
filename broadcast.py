import logging

logger = logging.getLogger(__name__)


def player_view(player):
    return {
        'role': player.role,
        'x': player.x,
        'y': player.y,
        'acting': player.acting,
        'pin_timer': player.pin_timer,
        'avatar': player.avatar,
        'dominant': player.dominant,
    }


def snapshot(room):
    return {
        'players': [player_view(p) for p in room.players.values()],
        'winner': room.winner,
    }


class Broadcaster:
    """Fans lobby, state and end events out to a Socket.IO room.

    Delivery is best-effort: a failed emit is logged and dropped.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def enter(self, sid, code):
        self.socketio.server.enter_room(sid, code, namespace=self.namespace)

    def exit(self, sid, code):
        try:
            self.socketio.server.leave_room(sid, code, namespace=self.namespace)
        except (KeyError, ValueError) as e:
            logger.debug("leave_room %s/%s: %s", code, sid, e)

    def lobby(self, room):
        self._emit('lobby', {'player_count': len(room.players)}, room.code)

    def state(self, room):
        self._emit('state', snapshot(room), room.code)

    def end(self, room):
        self._emit('end', {'winner': room.winner}, room.code)

    def _emit(self, event, payload, code):
        try:
            self.socketio.emit(event, payload, to=code, namespace=self.namespace)
        except Exception as e:
            logger.warning("emit %s to room %s failed: %s", event, code, e)
