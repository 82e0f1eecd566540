import logging
import threading
from typing import Dict, Optional

from partyroom.models import Room

logger = logging.getLogger(__name__)


class RoomStore:
    """In-memory registry of rooms, empty at startup.

    Rooms are created on first reference and only leave the store when the
    host closes them. Nothing is evicted for being empty or idle.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def get_or_create(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                room = Room(room_id)
                self._rooms[room_id] = room
                logger.info(f"[room-created] room={room_id}")
            return room

    def get(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def remove(self, room_id: str) -> Optional[Room]:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is not None:
            room.cancel_timer()
            logger.info(f"[room-removed] room={room_id}")
        return room

    def __contains__(self, room_id):
        with self._lock:
            return room_id in self._rooms

    def __len__(self):
        with self._lock:
            return len(self._rooms)
