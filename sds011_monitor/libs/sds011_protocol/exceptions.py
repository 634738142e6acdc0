"""
Custom exceptions for the SDS-011 protocol.
"""

from .constants import CommandID


class SDS011Error(Exception):
    """Base exception for SDS-011 protocol errors."""
    pass


class FrameError(SDS011Error):
    """Malformed response frame."""
    pass


class BadLengthError(FrameError):
    """Response frame does not have the fixed length."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Bad frame length: expected {expected} bytes, received {received}"
        )


class BadFramingError(FrameError):
    """Header, trailer or type marker is wrong."""
    pass


class ChecksumMismatchError(FrameError):
    """Checksum verification failed."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Checksum mismatch: expected 0x{expected:02X}, received 0x{received:02X}"
        )


class UnknownConfigError(FrameError):
    """Configuration reply carries an unrecognized command id."""

    def __init__(self, command_id: int):
        self.command_id = command_id
        super().__init__(f"Unknown configuration command 0x{command_id:02X}")


class ConnectionError(SDS011Error):
    """Serial connection or session error."""
    pass


class UnresponsiveError(ConnectionError):
    """Sensor never answered the connection probe."""

    def __init__(self, resends: int):
        self.resends = resends
        super().__init__(f"Sensor did not respond after {resends} probe resends")


class NotConnectedError(ConnectionError):
    """Command issued before connect() succeeded."""

    def __init__(self, message: str = "Not connected to SDS-011, call connect() first"):
        super().__init__(message)


class ProtocolError(SDS011Error):
    """Request/response exchange failed."""
    pass


class TimeoutError(ProtocolError):
    """No response within the attempt budget."""

    def __init__(self, attempts: int, what: str = "response"):
        self.attempts = attempts
        super().__init__(f"No {what} after {attempts} read attempts")


class ResponseMismatchError(ProtocolError):
    """Reply does not belong to, or does not confirm, the request."""

    def __init__(self, expected: int, received: int, detail: str = ""):
        self.expected = expected
        self.received = received
        msg = (
            f"Expected reply to {CommandID.name_of(expected)}, "
            f"got {CommandID.name_of(received)}"
        )
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class InvalidArgumentError(SDS011Error, ValueError):
    """Argument out of range, rejected before anything is sent."""
    pass
