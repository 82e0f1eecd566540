"""Room domain services: registry, admission, state machine, timers.

This package holds the room coordinator. It knows nothing about Flask
requests; the Socket.IO layer hands it connection ids and decoded payloads
and it talks back through a small transport adapter.
"""

from .store import RoomStore
from .broadcast import Broadcaster, SocketIOTransport
from .admission import Coordinator

__all__ = ['RoomStore', 'Broadcaster', 'SocketIOTransport', 'Coordinator']
