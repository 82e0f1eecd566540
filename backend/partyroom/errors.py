"""Errors raised while admitting connections and handling room messages.

Each carries the human readable ``message`` that is sent back to the
offending connection as an ``error`` payload (except ``ProtocolViolation``,
which refuses the connection without a reply).
"""


class RoomError(Exception):
    close_connection = False

    def __init__(self, message, close_connection=None):
        super().__init__(message)
        self.message = message
        if close_connection is not None:
            self.close_connection = close_connection

    def to_payload(self):
        return {'type': 'error', 'message': self.message}


class ProtocolViolation(RoomError):
    """Malformed handshake. The connection is refused silently."""

    close_connection = True


class AuthorizationError(RoomError):
    """Sender is not allowed to do this, e.g. a non-host starting the game."""


class ValidationError(RoomError):
    """Bad parameters, or a command issued in the wrong room state."""
