import functools
import logging
import random
import threading
from typing import Dict, Optional, Tuple

from partyroom.errors import AuthorizationError, ProtocolViolation, RoomError
from partyroom.models import Client, Room, empty_player_list
from . import lifecycle
from .cards import DEFAULT_TEMPLATE
from .router import MessageRouter
from .scheduler import GameTimer

logger = logging.getLogger(__name__)


def parse_is_host(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() == 'true'


class Coordinator:
    """Owns connection admission, the close path and message handling.

    The transport layer calls ``admit`` on connect, ``handle_message`` for
    every inbound payload and ``handle_disconnect`` when a connection goes
    away. Everything touching a room runs under that room's lock.
    """

    def __init__(self, store, broadcaster, timer_factory=GameTimer, default_host_nickname='Host',
                 card_template=DEFAULT_TEMPLATE, close_superseded=True, timer_heartbeat=0, rng=random,
                 max_pairs=None, flip_back_delay=1.5):
        self.store = store
        self.broadcaster = broadcaster
        self.timer_factory = timer_factory
        self.default_host_nickname = default_host_nickname
        self.card_template = card_template
        self.close_superseded = close_superseded
        self.timer_heartbeat = timer_heartbeat
        self.rng = rng
        self.max_pairs = max_pairs
        self.flip_back_delay = flip_back_delay
        self.router = MessageRouter(self)
        self._sessions: Dict[str, Tuple[Client, Room]] = {}
        self._sessions_lock = threading.Lock()

    # ---- connection lifecycle ----

    def admit(self, sid, room_id, nickname, is_host) -> Client:
        """Admit a new connection into its room, creating the room if needed.

        Raises ProtocolViolation for a malformed handshake and
        AuthorizationError when a second host tries to join.
        """
        room_id = (room_id or '').strip()
        if not room_id:
            raise ProtocolViolation('roomId is required')
        is_host = parse_is_host(is_host)
        nickname = (nickname or '').strip()
        if not nickname and is_host:
            nickname = self.default_host_nickname
        if not nickname:
            raise ProtocolViolation('nickname is required')

        client = Client(sid, room_id, nickname, is_host=is_host)
        evicted_sid = None
        while True:
            room = self.store.get_or_create(room_id)
            with room.lock:
                # lost a race with hostCloseGame; the next lookup makes a fresh room
                if room.closed:
                    continue
                if is_host:
                    if room.host_client is not None:
                        logger.info(f"[host-rejected] room={room_id} existing={room.host_client.nickname} new={nickname}")
                        raise AuthorizationError('Host already exists in this room.', close_connection=True)
                    room.host_client = client
                    logger.info(f"[host-registered] room={room_id} nickname={nickname}")
                else:
                    evicted_sid = room.replace_identity(client)
                    if evicted_sid is not None:
                        logger.info(f"[reconnect] room={room_id} nickname={nickname} old_sid={evicted_sid} new_sid={sid}")
                    logger.info(f"[player-registered] room={room_id} nickname={nickname} total={len(room.clients)}")
                with self._sessions_lock:
                    self._sessions[sid] = (client, room)
                self.broadcaster.broadcast(room, room.player_list_update())
            break

        if evicted_sid is not None and evicted_sid != sid and self.close_superseded:
            self.broadcaster.close(evicted_sid)
        return client

    def reject(self, sid, error: RoomError) -> Optional[dict]:
        """Log a refused connection and return the payload to refuse it with.

        A malformed handshake gets no explanation and returns None.
        """
        logger.info(f"[refused] sid={sid} {type(error).__name__}: {error.message}")
        if isinstance(error, ProtocolViolation):
            return None
        return error.to_payload()

    def handle_disconnect(self, sid) -> None:
        with self._sessions_lock:
            session = self._sessions.pop(sid, None)
        if session is None:
            return
        client, room = session
        with room.lock:
            if room.remove_client(client):
                logger.info(f"[unregistered] room={room.id} nickname={client.nickname} host={client.is_host} "
                            f"remaining={len(room.clients)}")
            else:
                logger.info(f"[stale-close] room={room.id} nickname={client.nickname} newer connection exists")
            if not room.closed:
                self.broadcaster.broadcast(room, room.player_list_update())

    # ---- messages ----

    def handle_message(self, sid, raw) -> None:
        session = self.session(sid)
        if session is None:
            logger.info(f"[no-session] sid={sid} message dropped")
            return
        client, room = session
        msg = self.router.decode(raw)
        if msg is None:
            logger.info(f"[bad-payload] room={room.id} nickname={client.nickname} payload={str(raw)[:100]!r}")
            return
        with room.lock:
            if room.closed:
                logger.info(f"[room-gone] room={room.id} nickname={client.nickname} type={msg.get('type')!r} dropped")
                return
            try:
                self.router.dispatch(client, room, msg)
            except RoomError as exc:
                self.broadcaster.send(client, exc.to_payload())
                if exc.close_connection:
                    self.broadcaster.close(sid)
            except Exception:
                logger.exception(f"[handler-error] room={room.id} nickname={client.nickname} type={msg.get('type')!r}")

    # ---- timers ----

    def make_round_timer(self, room, seconds):
        """Build an unstarted round timer whose expiry ends ``room``'s round."""
        timer = self.timer_factory(seconds, label=f"room={room.id}", heartbeat=self.timer_heartbeat)
        timer.callback = functools.partial(self._on_timer_expired, room, timer)
        return timer

    def schedule_flip_back(self, room, card_ids) -> None:
        timer = self.timer_factory(self.flip_back_delay, label=f"room={room.id} flip-back={card_ids}")
        timer.callback = functools.partial(self._on_flip_back, room, card_ids)
        timer.start()

    def _on_flip_back(self, room, card_ids) -> None:
        with room.lock:
            if room.closed:
                return
            lifecycle.flip_back(room, card_ids, self.broadcaster)

    def _on_timer_expired(self, room, timer) -> None:
        with room.lock:
            if room.timer is not timer:
                logger.info(f"[timer-stale] room={room.id} timer no longer current")
                return
            room.timer = None
            lifecycle.end_game(room, lifecycle.TIME_UP, self.broadcaster)

    # ---- queries ----

    def session(self, sid) -> Optional[Tuple[Client, Room]]:
        with self._sessions_lock:
            return self._sessions.get(sid)

    def player_list(self, room_id):
        room = self.store.get(room_id)
        if room is None:
            return empty_player_list()
        with room.lock:
            return room.player_list()
