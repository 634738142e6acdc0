"""Shared test fixtures: a scripted SDS-011 on a fake serial link."""

import pytest

from sds011_monitor.libs.sds011_protocol.constants import (
    HEADER, TRAILER, DATA_MARKER, CONF_MARKER, CommandID, ReportingMode, WorkMode,
)
from sds011_monitor.libs.sds011_protocol.frame import checksum


def response_frame(marker, payload, device_id=0xA160, checksum_override=None):
    """Build a 10-byte sensor frame."""
    body = bytes(payload) + bytes([device_id & 0xFF, (device_id >> 8) & 0xFF])
    cs = checksum(body) if checksum_override is None else checksum_override
    return bytes([HEADER, marker]) + body + bytes([cs, TRAILER])


def data_frame(pm25_raw, pm10_raw, device_id=0xA160):
    return response_frame(
        DATA_MARKER,
        [pm25_raw & 0xFF, pm25_raw >> 8, pm10_raw & 0xFF, pm10_raw >> 8],
        device_id,
    )


def conf_frame(command_id, b3=0, b4=0, b5=0, device_id=0xA160):
    return response_frame(CONF_MARKER, [command_id, b3, b4, b5], device_id)


class FakeSensor:
    """
    Emulates an SDS-011 behind a serial port.

    Replies are queued on write; read() hands them out in chunks.
    """

    def __init__(
        self,
        device_id=0xA160,
        firmware=(18, 11, 16),
        answer_every=1,
        silent=False,
        sticky=False,
        auto_stream=False,
        pm=(123, 456),
        chunk=None,
    ):
        self.device_id = device_id
        self.firmware = firmware
        self.answer_every = answer_every
        self.silent = silent
        self.sticky = sticky
        self.auto_stream = auto_stream
        self.pm = pm
        self.chunk = chunk

        self.reporting_mode = ReportingMode.STREAM
        self.work_mode = WorkMode.WORK
        self.working_period = 0

        self.writes = []
        self.reads = 0
        self.flushes = 0
        self.is_open = False
        self._rx = bytearray()

    # Transport contract

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False

    def flush(self):
        self.flushes += 1
        self._rx.clear()

    def write(self, data):
        self.writes.append(bytes(data))
        if not self.silent and len(self.writes) % self.answer_every == 0:
            reply = self.reply(data)
            if reply:
                self.queue(reply)
        return len(data)

    def read(self, size):
        self.reads += 1
        if not self._rx and self.auto_stream and self.reporting_mode == ReportingMode.STREAM:
            self.queue(data_frame(*self.pm, device_id=self.device_id))
        size = min(size, self.chunk) if self.chunk else size
        data = bytes(self._rx[:size])
        del self._rx[:size]
        return data

    # Sensor behaviour

    def queue(self, data):
        self._rx.extend(data)

    def stream(self, count=1):
        for _ in range(count):
            self.queue(data_frame(*self.pm, device_id=self.device_id))

    @property
    def commands(self):
        return [frame[2] for frame in self.writes]

    def reply(self, frame):
        command_id, is_set, value = frame[2], frame[3] == 1, frame[4]

        if command_id == CommandID.FIRMWARE:
            return conf_frame(command_id, *self.firmware, device_id=self.device_id)

        if command_id == CommandID.QUERY_DATA:
            return data_frame(*self.pm, device_id=self.device_id)

        if command_id == CommandID.DEVICE_ID:
            if not self.sticky:
                self.device_id = frame[13] | (frame[14] << 8)
            return conf_frame(command_id, device_id=self.device_id)

        attr = {
            CommandID.REPORTING_MODE: "reporting_mode",
            CommandID.SLEEP_WORK: "work_mode",
            CommandID.WORKING_PERIOD: "working_period",
        }.get(command_id)
        if attr is None:
            return None
        if is_set and not self.sticky:
            setattr(self, attr, value)
        return conf_frame(command_id, int(is_set), getattr(self, attr), device_id=self.device_id)


@pytest.fixture
def sensor():
    return FakeSensor()


@pytest.fixture
def silent_sensor():
    return FakeSensor(silent=True)
