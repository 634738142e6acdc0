"""
Protocol constants for the SDS-011 serial interface.

Reference: Nova Fitness SDS011 Laser Dust Sensor Control Protocol V1.3
"""

from enum import IntEnum

# Frame delimiters
HEADER = 0xAA
TRAILER = 0xAB

# Second byte of a frame
COMMAND_MARKER = 0xB4   # Host -> sensor
DATA_MARKER = 0xC0      # Sensor -> host, measurement
CONF_MARKER = 0xC5      # Sensor -> host, configuration reply

# Frame sizes
COMMAND_FRAME_LEN = 19
RESPONSE_FRAME_LEN = 10

# Device id stamped into commands before the sensor has told us its own
UNSET_DEVICE_ID = 0xFFFF

# Working period limits (minutes)
MIN_WORKING_PERIOD = 0
MAX_WORKING_PERIOD = 30

# Humidity correction: pm25 * 2.8 * (100 - RH) ^ -0.3745
HUMIDITY_FACTOR = 2.8
HUMIDITY_EXPONENT = -0.3745

# Seconds the sensor needs after waking up before readings can be trusted
WORK_STABILIZE_SECONDS = 30


class CommandID(IntEnum):
    """Command identifiers (third byte of command and CONF frames)."""
    REPORTING_MODE = 0x02
    QUERY_DATA = 0x04
    DEVICE_ID = 0x05
    SLEEP_WORK = 0x06
    FIRMWARE = 0x07
    WORKING_PERIOD = 0x08

    @classmethod
    def name_of(cls, command_id: int) -> str:
        """Get command name from ID."""
        try:
            return cls(command_id).name
        except ValueError:
            return f"Unknown(0x{command_id:02X})"


class Action(IntEnum):
    """Action byte of a command frame."""
    QUERY = 0x00
    SET = 0x01


class ReportingMode(IntEnum):
    """Data reporting mode."""
    STREAM = 0x00   # Sensor reports a measurement every second
    QUERY = 0x01    # Sensor reports only when asked


class WorkMode(IntEnum):
    """Sleep / work state."""
    SLEEP = 0x00
    WORK = 0x01


# Commands that never set the pending-request flag. A data query is answered
# with a DATA frame, and a sleeping sensor may stay silent on SLEEP_WORK.
PENDING_EXEMPT = frozenset({CommandID.QUERY_DATA, CommandID.SLEEP_WORK})

# Read attempts while waiting for a configuration reply
AWAIT_ATTEMPTS = 20

# Read attempts while waiting for a measurement
READ_ATTEMPTS = 20

# Connection probe: poll every 10 ms, resend after 2 silent polls, give up
# after 10 resends
PROBE_POLL_INTERVAL = 0.01
PROBE_POLLS = 2
PROBE_MAX_RESENDS = 10
