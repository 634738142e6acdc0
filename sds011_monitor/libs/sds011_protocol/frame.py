"""
Frame building and parsing.

Command frame (host -> sensor), 19 bytes:
    [AA][B4][CMD][ACTION][PARAM][0 x 8][NEWID_L][NEWID_H][ID_L][ID_H][CS][AB]
- CS: sum of bytes 2..16, truncated to 8 bits

Response frame (sensor -> host), 10 bytes:
    [AA][C0|C5][D1][D2][D3][D4][ID_L][ID_H][CS][AB]
- CS: sum of bytes 2..7, truncated to 8 bits
"""

from typing import Iterable, Optional

from .constants import (
    HEADER, TRAILER, COMMAND_MARKER, DATA_MARKER, CONF_MARKER,
    COMMAND_FRAME_LEN, RESPONSE_FRAME_LEN, UNSET_DEVICE_ID,
    CommandID, Action,
)
from .exceptions import (
    BadLengthError, BadFramingError, ChecksumMismatchError, UnknownConfigError,
)
from .responses import Measurement, ConfigAck, FirmwareInfo, Response


def checksum(data: Iterable[int]) -> int:
    """Unsigned byte sum with 8-bit wraparound."""
    total = 0
    for byte in data:
        total = (total + byte) & 0xFF
    return total


class FrameBuilder:
    """Builds command frames for transmission."""

    @staticmethod
    def build(
        command_id: int,
        is_set: bool = False,
        param: int = 0,
        device_id: int = UNSET_DEVICE_ID,
        new_device_id: Optional[int] = None
    ) -> bytes:
        """
        Build a complete 19-byte command frame.

        Args:
            command_id: Command identifier (CommandID)
            is_set: True for a set request, False for a query
            param: Parameter byte, only written for set requests
            device_id: Target device id stamped into bytes 15-16
            new_device_id: New id for a DEVICE_ID command, bytes 13-14

        Returns:
            Frame bytes ready for transmission
        """
        packet = bytearray(COMMAND_FRAME_LEN)
        packet[0] = HEADER
        packet[1] = COMMAND_MARKER
        packet[2] = command_id & 0xFF

        if is_set:
            packet[3] = Action.SET
            packet[4] = param & 0xFF

        if new_device_id is not None:
            packet[13] = new_device_id & 0xFF
            packet[14] = (new_device_id >> 8) & 0xFF

        packet[15] = device_id & 0xFF
        packet[16] = (device_id >> 8) & 0xFF
        packet[17] = checksum(packet[2:17])
        packet[18] = TRAILER
        return bytes(packet)


def decode_frame(data: bytes, humidity: float = 0.0) -> Response:
    """
    Decode a single 10-byte response frame.

    Args:
        data: Raw frame bytes
        humidity: Relative humidity for PM2.5 correction (0 disables)

    Returns:
        Measurement, ConfigAck or FirmwareInfo

    Raises:
        BadLengthError: Frame is not exactly 10 bytes
        BadFramingError: Header, trailer or type marker is wrong
        ChecksumMismatchError: Checksum does not match
        UnknownConfigError: CONF frame with unrecognized command id
    """
    if len(data) != RESPONSE_FRAME_LEN:
        raise BadLengthError(RESPONSE_FRAME_LEN, len(data))

    if data[0] != HEADER or data[-1] != TRAILER:
        raise BadFramingError(
            f"Bad delimiters: 0x{data[0]:02X} .. 0x{data[-1]:02X}"
        )

    calc = checksum(data[2:8])
    if calc != data[8]:
        raise ChecksumMismatchError(calc, data[8])

    device_id = data[6] | (data[7] << 8)
    marker = data[1]
    payload = bytes(data[2:6])

    if marker == DATA_MARKER:
        return Measurement.from_payload(payload, device_id, humidity)

    if marker != CONF_MARKER:
        raise BadFramingError(f"Unknown type marker 0x{marker:02X}")

    command_id = payload[0]
    if command_id in (CommandID.REPORTING_MODE, CommandID.SLEEP_WORK,
                      CommandID.WORKING_PERIOD):
        return ConfigAck(command_id, payload[1] == Action.SET, payload[2], device_id)
    if command_id == CommandID.DEVICE_ID:
        # Only settable; the new id is in the device id field
        return ConfigAck(command_id, True, 0, device_id)
    if command_id == CommandID.FIRMWARE:
        return FirmwareInfo.from_payload(payload, device_id)

    raise UnknownConfigError(command_id)


class FrameParser:
    """Cuts response frames out of a byte stream."""

    def __init__(self):
        self._buffer = bytearray()

    def feed(self, data: bytes) -> None:
        """Add data to parse buffer."""
        self._buffer.extend(data)

    def next_packet(self) -> Optional[bytes]:
        """
        Take the next header-aligned candidate frame from the buffer.

        Bytes before the next header are discarded, as is a header byte
        that is not followed by a trailer 10 bytes on. The candidate is
        otherwise not validated; pass it to decode_frame().

        Returns:
            10 bytes from header to trailer, or None if not enough data
        """
        while True:
            start = self._buffer.find(HEADER)
            if start < 0:
                self._buffer = bytearray()
                return None

            if start > 0:
                del self._buffer[:start]

            if len(self._buffer) < RESPONSE_FRAME_LEN:
                return None

            if self._buffer[RESPONSE_FRAME_LEN - 1] != TRAILER:
                del self._buffer[:1]
                continue

            packet = bytes(self._buffer[:RESPONSE_FRAME_LEN])
            del self._buffer[:RESPONSE_FRAME_LEN]
            return packet

    def clear(self) -> None:
        """Clear parse buffer."""
        self._buffer = bytearray()

    @property
    def buffer_size(self) -> int:
        """Get current buffer size."""
        return len(self._buffer)
