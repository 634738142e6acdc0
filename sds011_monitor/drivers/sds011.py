"""
SDS-011 Driver Module

Opens the serial port for an SDS-011 and hands it to the protocol client.
"""

import logging
import time
from typing import Any, Dict, Optional

from .base import BaseDriver
from ..libs.sds011_protocol import (
    SerialTransport,
    Session,
    SDS011Client,
    FirmwareInfo,
)

logger = logging.getLogger(__name__)


class SDS011Driver(BaseDriver):
    """
    Driver for an SDS-011 on a USB-serial adapter.

    Attributes:
        port: Serial port path
        baudrate: Communication speed
        timeout: Read timeout in seconds
        settle_delay: Pause before flushing a freshly opened port
    """

    def __init__(
        self,
        name: str = "SDS011Driver",
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[Any] = None
    ):
        """
        Initialize SDS-011 driver.

        Args:
            name: Driver name
            config: Configuration with keys:
                - port: Serial port (default: "/dev/ttyUSB0")
                - baudrate: Baud rate (default: 9600)
                - timeout: Read timeout (default: 1.0)
                - settle_delay: Seconds before the initial flush (default: 0.01)
            transport: Already constructed transport to use instead of
                opening the serial port
        """
        super().__init__(name=name, config=config)

        self.port: str = self.config.get("port", "/dev/ttyUSB0")
        self.baudrate: int = self.config.get("baudrate", 9600)
        self.timeout: float = self.config.get("timeout", 1.0)
        self.settle_delay: float = self.config.get("settle_delay", 0.01)

        self._transport = transport
        self._owns_transport = transport is None
        self._client: Optional[SDS011Client] = None
        self._firmware: Optional[FirmwareInfo] = None

    @property
    def client(self) -> SDS011Client:
        """Protocol client, available once connected."""
        if not self._client:
            raise RuntimeError("Not connected to SDS-011")
        return self._client

    def connect(self) -> None:
        """
        Open the port and run the connection handshake.

        Raises:
            ConnectionError: Port cannot be opened
            UnresponsiveError: Sensor never answered
        """
        logger.info(f"Connecting to SDS-011 on {self.port} at {self.baudrate} bps")

        if self._owns_transport:
            self._transport = SerialTransport(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout
            )
            self._transport.open()

        try:
            # USB-serial adapters can hold bytes from before the port was
            # opened and do not always honour a flush right after open
            time.sleep(self.settle_delay)
            self.flush()

            self._client = SDS011Client(Session(self._transport))
            self._firmware = self._client.connect()
        except Exception:
            self.disconnect()
            raise

        self._connected = True
        logger.info(f"Connected: {self.identify()}")

    def disconnect(self) -> None:
        """Close the port."""
        if self._client:
            self._client.session.disconnect()
            self._client = None

        if self._transport and self._owns_transport:
            self._transport.close()
            self._transport = None

        self._connected = False
        logger.info("Disconnected from SDS-011")

    def reset(self) -> None:
        """Flush the link and repeat the handshake."""
        self.flush()
        self._firmware = self.client.connect()
        logger.info("SDS-011 connection verified")

    def flush(self) -> None:
        """Discard buffered bytes, e.g. frames received while waiting."""
        if self._transport is not None and hasattr(self._transport, "flush"):
            self._transport.flush()

    def identify(self) -> str:
        """
        Return sensor identification string.

        Returns:
            str: e.g. "Nova,SDS011,0xA160,FW-18-11-16"
        """
        device_id = self._client.session.device_id if self._client else None
        ident = "Nova,SDS011"
        ident += f",0x{device_id:04X}" if device_id is not None else ",Unknown"
        if self._firmware:
            ident += f",FW-{self._firmware}"
        return ident
