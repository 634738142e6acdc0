"""
SDS011 Protocol - Python implementation of the SDS-011 serial protocol.

This package provides:
- Protocol constants and command identifiers
- Byte-sum checksum
- Frame building and parsing
- Serial transport layer
- Session with pending-request guard and connection handshake
- High-level command client
"""

from .constants import (
    HEADER, TRAILER, COMMAND_FRAME_LEN, RESPONSE_FRAME_LEN, UNSET_DEVICE_ID,
    CommandID, ReportingMode, WorkMode, WORK_STABILIZE_SECONDS,
)
from .exceptions import (
    SDS011Error, FrameError, BadLengthError, BadFramingError,
    ChecksumMismatchError, UnknownConfigError,
    ConnectionError, UnresponsiveError, NotConnectedError,
    ProtocolError, TimeoutError, ResponseMismatchError, InvalidArgumentError,
)
from .frame import checksum, decode_frame, FrameBuilder, FrameParser
from .responses import Measurement, ConfigAck, FirmwareInfo, Response
from .transport import SerialTransport
from .session import Session
from .client import SDS011Client, parse_device_id

__version__ = "2.1.0"
__all__ = [
    # Constants
    "HEADER", "TRAILER", "COMMAND_FRAME_LEN", "RESPONSE_FRAME_LEN",
    "UNSET_DEVICE_ID", "WORK_STABILIZE_SECONDS",
    "CommandID", "ReportingMode", "WorkMode",
    # Exceptions
    "SDS011Error", "FrameError", "BadLengthError", "BadFramingError",
    "ChecksumMismatchError", "UnknownConfigError",
    "ConnectionError", "UnresponsiveError", "NotConnectedError",
    "ProtocolError", "TimeoutError", "ResponseMismatchError",
    "InvalidArgumentError",
    # Frame
    "checksum", "decode_frame", "FrameBuilder", "FrameParser",
    # Responses
    "Measurement", "ConfigAck", "FirmwareInfo", "Response",
    # Transport
    "SerialTransport",
    # Session / client
    "Session", "SDS011Client", "parse_device_id",
]
