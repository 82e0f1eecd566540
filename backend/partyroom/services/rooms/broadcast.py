import json
import logging

logger = logging.getLogger(__name__)

MESSAGE_EVENT = 'message'


class SocketIOTransport:
    """Delivers protocol payloads as the ``message`` event on one namespace."""

    def __init__(self, socketio, namespace='/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, sid, payload):
        self.socketio.emit(MESSAGE_EVENT, payload, to=sid, namespace=self.namespace)

    def is_open(self, sid):
        server = self.socketio.server
        if server is None:
            return False
        return server.manager.is_connected(sid, self.namespace)

    def close(self, sid):
        self.socketio.server.disconnect(sid, namespace=self.namespace)


class Broadcaster:
    """Fan-out to a room's connections.

    Delivery failures are logged and skipped. Membership is never touched
    here; clients leave a room only through their own close event.
    """

    def __init__(self, transport):
        self.transport = transport

    def broadcast(self, room, payload):
        recipients = []
        if room.host_client is not None:
            recipients.append(room.host_client)
        recipients.extend(room.players())
        delivered = sum(1 for client in recipients if self._deliver(client, payload))
        logger.debug(f"[broadcast] room={room.id} type={payload.get('type')} delivered={delivered}/{len(recipients)} "
                     f"payload={json.dumps(payload)[:100]}")

    def send(self, client, payload):
        return self._deliver(client, payload)

    def close(self, sid):
        try:
            if self.transport.is_open(sid):
                self.transport.close(sid)
                return True
        except Exception:
            logger.exception(f"[close-fail] sid={sid}")
        return False

    def _deliver(self, client, payload):
        try:
            if not self.transport.is_open(client.sid):
                return False
            self.transport.send(client.sid, payload)
            return True
        except Exception as exc:
            logger.warning(f"[broadcast-fail] room={client.room_id} nickname={client.nickname} sid={client.sid}: {exc}")
            return False
