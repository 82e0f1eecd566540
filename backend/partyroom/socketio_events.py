import logging

from flask import current_app, request
from flask_socketio import ConnectionRefusedError

from partyroom import socketio
from partyroom.errors import RoomError

logger = logging.getLogger(__name__)


def _coordinator():
    return current_app.extensions['partyroom']


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    """Admit the connection using its handshake query parameters.

    A malformed handshake is refused with no reason. Other refusals, such as
    a duplicate host, carry the error payload as the connect_error data.
    """
    sid = _get_sid()
    args = request.args
    coordinator = _coordinator()
    try:
        coordinator.admit(sid, args.get('roomId'), args.get('nickname'), args.get('isHost'))
    except RoomError as exc:
        payload = coordinator.reject(sid, exc)
        if payload is None:
            return False
        raise ConnectionRefusedError(exc.message, payload)


def handle_disconnect(reason=None):
    _coordinator().handle_disconnect(_get_sid())


def handle_message(data):
    _coordinator().handle_message(_get_sid(), data)


def handle_error(exc):
    logger.exception(f"[socket-error] sid={getattr(request, 'sid', None)}: {exc}")


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the room protocol namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
