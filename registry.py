import logging
import threading
from typing import Dict, Optional

from models import ROLES, Room

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 12


def normalize_code(raw) -> str:
    if raw is None:
        return ''
    return str(raw).strip().upper()


def assign_role(room: Room) -> Optional[str]:
    """Lowest seat not held by anyone in the room, or None when all are taken."""
    taken = {p.role for p in room.players.values()}
    for role in ROLES:
        if role not in taken:
            return role
    return None


class RoomRegistry:
    """Owns every live room, keyed by normalized code."""

    def __init__(self, settings):
        self.settings = settings
        self._rooms: Dict[str, Room] = {}
        # Only guards the map itself; never held while a room lock is requested
        self._lock = threading.Lock()

    def get(self, code: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(code)

    def get_or_create(self, code: str) -> Room:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                room = Room(code, self.settings)
                self._rooms[code] = room
                logger.info("Room created: %s", code)
            return room

    def discard(self, room: Room) -> None:
        with self._lock:
            if self._rooms.get(room.code) is room:
                del self._rooms[room.code]
                logger.info("Room destroyed: %s", room.code)
            room.closed = True

    def stats(self) -> dict:
        with self._lock:
            rooms = list(self._rooms.values())
        return {
            'rooms': len(rooms),
            'players': sum(len(room.players) for room in rooms),
        }

    def __contains__(self, code):
        with self._lock:
            return code in self._rooms

    def __len__(self):
        with self._lock:
            return len(self._rooms)
