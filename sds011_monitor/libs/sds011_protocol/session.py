"""
Protocol session: request/response correlation and connection handshake.

The SDS-011 loses track of a configuration request when the next one
arrives before it has replied. The session therefore allows at most one
outstanding configuration request and drains the link before sending
another. In streaming mode the first frames read back after a request are
often still measurements, so a wait consumes frames until a configuration
reply shows up or the attempt budget runs out.
"""

import time
import logging
from typing import Callable, Optional, Union

from .constants import (
    RESPONSE_FRAME_LEN, UNSET_DEVICE_ID, PENDING_EXEMPT,
    AWAIT_ATTEMPTS, READ_ATTEMPTS,
    PROBE_POLL_INTERVAL, PROBE_POLLS, PROBE_MAX_RESENDS,
    CommandID,
)
from .exceptions import (
    FrameError, UnknownConfigError, ConnectionError, UnresponsiveError,
    NotConnectedError, TimeoutError, InvalidArgumentError,
)
from .frame import FrameBuilder, FrameParser, decode_frame
from .responses import Measurement, ConfigAck, FirmwareInfo, Response, is_config

logger = logging.getLogger(__name__)


class Session:
    """Owns the protocol state of one connection to a sensor."""

    def __init__(self, transport, humidity: float = 0.0):
        """
        Initialize session.

        Args:
            transport: Object with write(bytes) -> int and read(size) -> bytes
            humidity: Relative humidity for PM2.5 correction (0 disables)
        """
        self.transport = transport
        self.on_measurement: Optional[Callable[[Measurement], None]] = None
        self.firmware: Optional[FirmwareInfo] = None
        self._parser = FrameParser()
        self._pending_command: Optional[int] = None
        self._device_id = UNSET_DEVICE_ID
        self._humidity = 0.0
        self._connected = False
        self.set_humidity(humidity)

    @property
    def pending_request(self) -> bool:
        """True while a configuration request is waiting for its reply."""
        return self._pending_command is not None

    @property
    def device_id(self) -> int:
        """Last device id seen on the link (0xFFFF until then)."""
        return self._device_id

    @property
    def humidity(self) -> float:
        return self._humidity

    @property
    def connected(self) -> bool:
        return self._connected

    def set_humidity(self, humidity: float) -> None:
        """
        Set relative humidity used to correct PM2.5 readings.

        Args:
            humidity: 0-100 percent, 0 disables correction

        Raises:
            InvalidArgumentError: If outside 0-100
        """
        if not 0 <= humidity <= 100:
            raise InvalidArgumentError(f"Humidity must be 0-100%, got {humidity}")
        self._humidity = float(humidity)
        logger.debug(f"Humidity correction: {self._humidity}%")
        if humidity == 100:
            logger.warning("Humidity correction at 100% makes PM2.5 readings infinite")

    def require_connected(self) -> None:
        """Raise NotConnectedError unless connect() has succeeded."""
        if not self._connected:
            raise NotConnectedError()

    # === Sending ===

    def send(
        self,
        command_id: int,
        is_set: bool = False,
        param: int = 0,
        new_device_id: Optional[int] = None,
        max_attempts: int = AWAIT_ATTEMPTS
    ) -> bytes:
        """
        Send a command frame.

        An outstanding configuration request is drained first; the command
        is not sent if it is still outstanding afterwards.

        Args:
            command_id: Command identifier
            is_set: True for a set request
            param: Parameter byte for set requests
            new_device_id: New id for DEVICE_ID
            max_attempts: Attempts for draining an outstanding request

        Returns:
            The frame written

        Raises:
            TimeoutError: Previous request never answered
            ConnectionError: Transport failed or wrote a short frame
        """
        if self._pending_command is not None:
            logger.debug(
                f"{CommandID.name_of(self._pending_command)} still pending, draining"
            )
            self.await_response(max_attempts)

        frame = FrameBuilder.build(
            command_id, is_set, param, self._device_id, new_device_id
        )
        logger.debug(f"Sending {CommandID.name_of(command_id)}: {frame.hex(' ')}")

        count = self.transport.write(frame)
        if count != len(frame):
            raise ConnectionError(f"Short write: {count} of {len(frame)} bytes")

        if command_id not in PENDING_EXEMPT:
            self._pending_command = command_id
        return frame

    # === Receiving ===

    def receive(self) -> Optional[Response]:
        """
        Read and decode one frame.

        Returns:
            Parsed response, or None if no complete frame arrived

        Raises:
            FrameError: The frame read was malformed
        """
        packet = self._parser.next_packet()
        if packet is None:
            data = self.transport.read(RESPONSE_FRAME_LEN)
            if data:
                self._parser.feed(data)
            packet = self._parser.next_packet()
            if packet is None:
                return None

        logger.debug(f"Received: {packet.hex(' ')}")
        response = decode_frame(packet, self._humidity)
        self._accept(response)
        return response

    def _accept(self, response: Response) -> None:
        if response.device_id != self._device_id:
            logger.info(f"Device id 0x{self._device_id:04X} -> 0x{response.device_id:04X}")
            self._device_id = response.device_id

        if isinstance(response, ConfigAck):
            logger.debug(response.describe())

        if is_config(response) and self._pending_command is not None:
            logger.debug(f"Pending {CommandID.name_of(self._pending_command)} answered")
            self._pending_command = None

    def _poll(self) -> Optional[Response]:
        """One read attempt. Malformed frames count as an empty read."""
        try:
            return self.receive()
        except UnknownConfigError as e:
            logger.warning(f"Ignoring reply: {e}")
        except FrameError as e:
            logger.warning(f"Discarding frame: {e}")
        return None

    def _display(self, measurement: Measurement) -> None:
        if self.on_measurement is not None:
            self.on_measurement(measurement)

    # === Correlation ===

    def await_response(self, max_attempts: int = AWAIT_ATTEMPTS) -> None:
        """
        Read frames until the pending configuration request is answered.

        Args:
            max_attempts: Read attempts before giving up

        Raises:
            TimeoutError: Request still pending after max_attempts reads
        """
        attempts = 0
        while self._pending_command is not None:
            if attempts >= max_attempts:
                raise TimeoutError(
                    max_attempts,
                    f"reply to {CommandID.name_of(self._pending_command)}"
                )
            attempts += 1

            response = self._poll()
            if isinstance(response, Measurement):
                self._display(response)

    def request(
        self,
        command_id: int,
        is_set: bool = False,
        param: int = 0,
        new_device_id: Optional[int] = None,
        max_attempts: int = AWAIT_ATTEMPTS
    ) -> Union[ConfigAck, FirmwareInfo]:
        """
        Send a configuration command and wait for its reply.

        Replies to other commands are stale leftovers on the link; they are
        skipped and the request stays pending.

        Args:
            command_id: Command identifier
            is_set: True for a set request
            param: Parameter byte for set requests
            new_device_id: New id for DEVICE_ID
            max_attempts: Read attempts for the reply

        Returns:
            The configuration reply

        Raises:
            TimeoutError: No reply within max_attempts
        """
        self.send(command_id, is_set, param, new_device_id, max_attempts)

        for _ in range(max_attempts):
            response = self._poll()
            if response is None:
                continue
            if isinstance(response, Measurement):
                self._display(response)
                continue
            if response.command_id != command_id:
                logger.warning(
                    f"Skipping stale {CommandID.name_of(response.command_id)} reply "
                    f"while waiting for {CommandID.name_of(command_id)}"
                )
                if command_id not in PENDING_EXEMPT:
                    self._pending_command = command_id
                continue
            return response

        raise TimeoutError(max_attempts, f"reply to {CommandID.name_of(command_id)}")

    def read_measurement(self, max_attempts: int = READ_ATTEMPTS) -> Measurement:
        """
        Read frames until a measurement arrives.

        Configuration replies read on the way still clear the pending flag.

        Raises:
            TimeoutError: No measurement within max_attempts
        """
        for _ in range(max_attempts):
            response = self._poll()
            if isinstance(response, Measurement):
                return response

        raise TimeoutError(max_attempts, "measurement")

    # === Connection ===

    def connect(
        self,
        poll_interval: float = PROBE_POLL_INTERVAL,
        polls_per_probe: int = PROBE_POLLS,
        max_resends: int = PROBE_MAX_RESENDS
    ) -> Optional[FirmwareInfo]:
        """
        Probe the sensor with a firmware query until it answers.

        Stale bytes left in a USB-serial buffer can make the sensor miss the
        first probe, so the probe is resent after every polls_per_probe
        silent polls, at most max_resends times. Only a firmware reply ends
        the handshake; other replies still queued are skipped.

        Returns:
            Firmware date from the answering frame

        Raises:
            UnresponsiveError: No answer after max_resends resends
            ConnectionError: Transport failed
        """
        self.disconnect()
        logger.debug("Trying to connect")

        self.send(CommandID.FIRMWARE)
        resends = 0
        polls = 0

        while True:
            time.sleep(poll_interval)
            response = self._poll()
            if isinstance(response, FirmwareInfo):
                self.firmware = response
                break
            if response is not None and is_config(response):
                logger.warning(f"Skipping stale {response.command_name} reply during probe")
                self._pending_command = CommandID.FIRMWARE

            polls += 1
            if polls < polls_per_probe:
                continue

            polls = 0
            if resends >= max_resends:
                logger.warning(f"No answer after {resends} probe resends")
                raise UnresponsiveError(resends)
            resends += 1
            logger.debug(f"Resending probe ({resends}/{max_resends})")
            self._pending_command = None
            self.send(CommandID.FIRMWARE)

        self._connected = True
        logger.info(f"Connected to SDS-011 0x{self._device_id:04X}")
        return self.firmware

    def disconnect(self) -> None:
        """Forget all session state. The transport is left to its owner."""
        self._connected = False
        self._pending_command = None
        self._device_id = UNSET_DEVICE_ID
        self.firmware = None
        self._parser.clear()

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"Session(device=0x{self._device_id:04X}, {status})"
