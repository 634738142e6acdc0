"""
High-level protocol client.

Typed operations on top of a Session. Arguments are validated before
anything is written to the sensor.
"""

import logging
from typing import Optional, Union

from .constants import (
    MIN_WORKING_PERIOD, MAX_WORKING_PERIOD, AWAIT_ATTEMPTS, READ_ATTEMPTS,
    CommandID, ReportingMode, WorkMode,
)
from .exceptions import InvalidArgumentError, ResponseMismatchError
from .responses import ConfigAck, FirmwareInfo, Measurement
from .session import Session

logger = logging.getLogger(__name__)


def parse_device_id(value: Union[int, str]) -> int:
    """
    Convert a device id given as int or 4 hex digits ("0xAABB" / "AABB").

    Raises:
        InvalidArgumentError: Not a 16-bit id
    """
    if isinstance(value, str):
        text = value.strip()
        digits = text[2:] if text.lower().startswith("0x") else text
        if len(digits) != 4:
            raise InvalidArgumentError(f"Device id must be 4 hex digits, got {value!r}")
        try:
            value = int(digits, 16)
        except ValueError:
            raise InvalidArgumentError(f"Invalid device id {value!r}") from None

    if not 0 <= value <= 0xFFFF:
        raise InvalidArgumentError(f"Device id must be 0x0000-0xFFFF, got {value}")
    return value


class SDS011Client:
    """High-level client for the SDS-011 sensor."""

    def __init__(
        self,
        session: Session,
        response_attempts: int = AWAIT_ATTEMPTS,
        read_attempts: int = READ_ATTEMPTS
    ):
        """
        Initialize SDS-011 client.

        Args:
            session: Session over an open transport
            response_attempts: Read attempts per configuration reply
            read_attempts: Read attempts per measurement
        """
        self.session = session
        self.response_attempts = response_attempts
        self.read_attempts = read_attempts

    def connect(self) -> Optional[FirmwareInfo]:
        """Run the connection handshake. See Session.connect()."""
        return self.session.connect()

    @property
    def connected(self) -> bool:
        return self.session.connected

    def _request(
        self,
        command_id: CommandID,
        value: Optional[int] = None,
        new_device_id: Optional[int] = None
    ) -> Union[ConfigAck, FirmwareInfo]:
        self.session.require_connected()
        is_set = value is not None
        response = self.session.request(
            command_id,
            is_set=is_set,
            param=value or 0,
            new_device_id=new_device_id,
            max_attempts=self.response_attempts,
        )
        if is_set and response.value != value:
            raise ResponseMismatchError(
                command_id, response.command_id,
                f"sensor confirmed {response.value}, requested {value}"
            )
        return response

    # === Reporting mode ===

    def get_reporting_mode(self) -> ReportingMode:
        """Get current data reporting mode."""
        ack = self._request(CommandID.REPORTING_MODE)
        mode = self._decode_mode(ReportingMode, ack)
        logger.info(f"Reporting mode: {mode.name}")
        return mode

    def set_reporting_mode(self, mode: ReportingMode) -> ReportingMode:
        """
        Set data reporting mode.

        Args:
            mode: ReportingMode.STREAM or ReportingMode.QUERY

        Returns:
            Mode confirmed by the sensor
        """
        mode = self._check_enum(ReportingMode, mode)
        ack = self._request(CommandID.REPORTING_MODE, mode)
        logger.info(f"Set reporting mode: {mode.name}")
        return self._decode_mode(ReportingMode, ack)

    # === Sleep / work ===

    def get_work_mode(self) -> WorkMode:
        """Get current sleep/work state."""
        ack = self._request(CommandID.SLEEP_WORK)
        mode = self._decode_mode(WorkMode, ack)
        logger.info(f"Work mode: {mode.name}")
        return mode

    def set_work_mode(self, mode: WorkMode) -> WorkMode:
        """
        Put the sensor to sleep or wake it up.

        After WORK the fan and laser need about 30 seconds before
        measurements can be trusted; the caller has to wait.

        Args:
            mode: WorkMode.SLEEP or WorkMode.WORK

        Returns:
            Mode confirmed by the sensor
        """
        mode = self._check_enum(WorkMode, mode)
        ack = self._request(CommandID.SLEEP_WORK, mode)
        logger.info(f"Set work mode: {mode.name}")
        return self._decode_mode(WorkMode, ack)

    # === Working period ===

    def get_working_period(self) -> int:
        """Get working period in minutes (0 = continuous)."""
        ack = self._request(CommandID.WORKING_PERIOD)
        logger.info(f"Working period: {ack.value} min")
        return ack.value

    def set_working_period(self, minutes: int) -> int:
        """
        Set working period.

        Args:
            minutes: 0 for continuous, 1-30 to measure every n minutes

        Returns:
            Period confirmed by the sensor

        Raises:
            InvalidArgumentError: If outside 0-30
        """
        if not isinstance(minutes, int) or not MIN_WORKING_PERIOD <= minutes <= MAX_WORKING_PERIOD:
            raise InvalidArgumentError(
                f"{minutes} is invalid period, must be "
                f"{MIN_WORKING_PERIOD} to {MAX_WORKING_PERIOD} minutes"
            )
        ack = self._request(CommandID.WORKING_PERIOD, minutes)
        logger.info(f"Set working period: {minutes} min")
        return ack.value

    # === Device id ===

    def get_device_id(self) -> int:
        """Device id captured from the last frame received."""
        self.session.require_connected()
        return self.session.device_id

    def set_device_id(self, new_id: Union[int, str]) -> int:
        """
        Assign a new device id.

        The id changes only once the sensor acknowledges it.

        Args:
            new_id: Integer or 4 hex digits

        Returns:
            Device id reported in the acknowledgement
        """
        new_id = parse_device_id(new_id)
        ack = self._request(CommandID.DEVICE_ID, new_device_id=new_id)
        if ack.device_id != new_id:
            raise ResponseMismatchError(
                CommandID.DEVICE_ID, ack.command_id,
                f"sensor reports 0x{ack.device_id:04X}, requested 0x{new_id:04X}"
            )
        logger.info(f"New device id: 0x{new_id:04X}")
        return ack.device_id

    # === Firmware ===

    def get_firmware_version(self) -> FirmwareInfo:
        """Get firmware build date (raw year, month, day)."""
        info = self._request(CommandID.FIRMWARE)
        logger.info(f"Firmware date: {info}")
        return info

    # === Measurements ===

    def set_humidity_correction(self, humidity: float) -> None:
        """
        Enable PM2.5 humidity correction.

        Args:
            humidity: Relative humidity 0-100 percent, 0 disables
        """
        self.session.require_connected()
        self.session.set_humidity(humidity)

    def read_measurement(self, mode: ReportingMode = ReportingMode.STREAM) -> Measurement:
        """
        Read one measurement.

        Args:
            mode: STREAM waits for the next unsolicited frame, QUERY asks
                for one first

        Returns:
            Measurement, humidity-corrected if enabled
        """
        mode = self._check_enum(ReportingMode, mode)
        self.session.require_connected()
        if mode == ReportingMode.QUERY:
            self.session.send(CommandID.QUERY_DATA, max_attempts=self.response_attempts)

        measurement = self.session.read_measurement(self.read_attempts)
        logger.debug(f"Measurement: {measurement}")
        return measurement

    @staticmethod
    def _decode_mode(enum_cls, ack: ConfigAck):
        """Mode byte of a reply as enum_cls; unknown values are a protocol error."""
        try:
            return enum_cls(ack.value)
        except ValueError:
            raise ResponseMismatchError(
                ack.command_id, ack.command_id,
                f"unknown {enum_cls.__name__} value {ack.value}"
            ) from None

    @staticmethod
    def _check_enum(enum_cls, value):
        try:
            return enum_cls(value)
        except ValueError:
            raise InvalidArgumentError(
                f"Invalid {enum_cls.__name__}: {value!r}"
            ) from None
