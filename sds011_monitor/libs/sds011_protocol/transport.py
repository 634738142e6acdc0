"""
Serial transport layer.

Thin pyserial wrapper. Reads are bounded by the port timeout and may
return fewer bytes than requested, or none.
"""

import serial
import logging
from typing import Optional

from .exceptions import ConnectionError

logger = logging.getLogger(__name__)


class SerialTransport:
    """Serial communication transport layer."""

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = 1.0
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port name (e.g., '/dev/ttyUSB0' or 'COM3')
            baudrate: Baud rate (SDS-011 is fixed at 9600)
            timeout: Read timeout in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self._serial: Optional[serial.Serial] = None

    def open(self) -> None:
        """Open serial port."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout
            )
            logger.info(f"Opened serial port {self.port} at {self.baudrate} bps")

        except serial.SerialException as e:
            raise ConnectionError(f"Failed to open {self.port}: {e}") from e

    def close(self) -> None:
        """Close serial port."""
        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.warning(f"Error closing {self.port}: {e}")
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    def write(self, data: bytes) -> int:
        """
        Send data over serial port.

        Args:
            data: Bytes to send

        Returns:
            Number of bytes sent

        Raises:
            ConnectionError: If port is not open or the write fails
        """
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Serial port not open")

        try:
            count = self._serial.write(data)
            logger.debug(f"TX ({count} bytes): {data.hex(' ')}")
            return count
        except serial.SerialException as e:
            raise ConnectionError(f"Send failed: {e}") from e

    def read(self, size: int) -> bytes:
        """
        Read up to size bytes.

        Args:
            size: Maximum number of bytes

        Returns:
            Received bytes (empty on timeout)

        Raises:
            ConnectionError: If port is not open or the read fails
        """
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Serial port not open")

        try:
            data = self._serial.read(size)
        except serial.SerialException as e:
            raise ConnectionError(f"Receive failed: {e}") from e

        if data:
            logger.debug(f"RX ({len(data)} bytes): {data.hex(' ')}")
        return data

    def flush(self) -> None:
        """Discard anything waiting in the input and output buffers."""
        if self._serial and self._serial.is_open:
            try:
                self._serial.reset_input_buffer()
                self._serial.reset_output_buffer()
            except serial.SerialException as e:
                logger.warning(f"Flush failed on {self.port}: {e}")

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        return self._serial is not None and self._serial.is_open

    def __enter__(self) -> 'SerialTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self.port}, {self.baudrate}, {status})"
