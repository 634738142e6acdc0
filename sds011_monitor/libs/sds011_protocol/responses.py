"""
Parsed response structures.

Reference: SDS011 Control Protocol V1.3, reply frames.
Measurement fields are little-endian, device id is low byte first.
"""

from dataclasses import dataclass
from typing import Union
import struct

from .constants import (
    CommandID, ReportingMode, WorkMode,
    HUMIDITY_FACTOR, HUMIDITY_EXPONENT,
)


def humidity_factor(humidity: float) -> float:
    """
    PM2.5 correction factor for a relative humidity.

    Args:
        humidity: Relative humidity in percent, 0 disables correction

    Returns:
        Multiplier to apply to the raw PM2.5 value
    """
    if not humidity:
        return 1.0
    if humidity >= 100:
        # (100 - RH) ^ negative exponent diverges at saturation
        return float('inf')
    return HUMIDITY_FACTOR * (100 - humidity) ** HUMIDITY_EXPONENT


@dataclass
class Measurement:
    """Particulate matter reading (DATA frame)."""
    pm25: float        # PM2.5 in ug/m3
    pm10: float        # PM10 in ug/m3
    device_id: int

    @classmethod
    def from_payload(cls, payload: bytes, device_id: int, humidity: float = 0.0) -> 'Measurement':
        """Deserialize from the 4 payload bytes of a DATA frame."""
        raw25, raw10 = struct.unpack('<HH', payload[:4])
        pm25 = raw25 / 10.0
        pm10 = raw10 / 10.0
        if humidity:
            pm25 *= humidity_factor(humidity)
        return cls(pm25, pm10, device_id)

    def __repr__(self) -> str:
        return f"Measurement(pm25={self.pm25:.1f}, pm10={self.pm10:.1f}, device=0x{self.device_id:04X})"


@dataclass
class ConfigAck:
    """Reply to a reporting-mode, sleep/work, working-period or device-id command."""
    command_id: int
    is_set: bool
    value: int
    device_id: int

    @property
    def command_name(self) -> str:
        return CommandID.name_of(self.command_id)

    def describe(self) -> str:
        """Human readable summary of the reply."""
        kind = "set" if self.is_set else "get"
        if self.command_id == CommandID.REPORTING_MODE:
            mode = "query" if self.value == ReportingMode.QUERY else "report / streaming"
            return f"Type: {kind} mode: {mode}"
        if self.command_id == CommandID.SLEEP_WORK:
            mode = "work" if self.value == WorkMode.WORK else "sleep"
            return f"Type: {kind} mode: {mode}"
        if self.command_id == CommandID.WORKING_PERIOD:
            period = f"{self.value} minute(s)" if self.value else "continuous"
            return f"Type: {kind} period: {period}"
        return f"New DeviceID: 0x{self.device_id:04X}"

    def __repr__(self) -> str:
        return (f"ConfigAck({self.command_name}, "
                f"{'set' if self.is_set else 'query'}, value={self.value}, "
                f"device=0x{self.device_id:04X})")


@dataclass
class FirmwareInfo:
    """Firmware build date. Year is the raw byte, no century."""
    year: int
    month: int
    day: int
    device_id: int

    command_id = CommandID.FIRMWARE

    @classmethod
    def from_payload(cls, payload: bytes, device_id: int) -> 'FirmwareInfo':
        """Deserialize from bytes 3..5 of a CONF frame."""
        year, month, day = struct.unpack('BBB', payload[1:4])
        return cls(year, month, day, device_id)

    def __str__(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"

    def __repr__(self) -> str:
        return f"FirmwareInfo({self}, device=0x{self.device_id:04X})"


Response = Union[Measurement, ConfigAck, FirmwareInfo]


def is_config(response: Response) -> bool:
    """True for replies to configuration commands."""
    return isinstance(response, (ConfigAck, FirmwareInfo))


__all__ = [
    "humidity_factor", "Measurement", "ConfigAck", "FirmwareInfo",
    "Response", "is_config",
]
