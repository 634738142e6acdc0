"""Tests for the typed command client."""

import pytest

from sds011_monitor.libs.sds011_protocol.client import SDS011Client, parse_device_id
from sds011_monitor.libs.sds011_protocol.constants import CommandID, ReportingMode, WorkMode
from sds011_monitor.libs.sds011_protocol.exceptions import (
    InvalidArgumentError, NotConnectedError, ResponseMismatchError,
)
from sds011_monitor.libs.sds011_protocol.session import Session

from conftest import FakeSensor, conf_frame


def make_client(sensor):
    client = SDS011Client(Session(sensor))
    client.session.connect(poll_interval=0)
    return client


@pytest.mark.parametrize("call", [
    lambda c: c.get_reporting_mode(),
    lambda c: c.set_reporting_mode(ReportingMode.QUERY),
    lambda c: c.get_work_mode(),
    lambda c: c.set_work_mode(WorkMode.WORK),
    lambda c: c.get_working_period(),
    lambda c: c.set_working_period(5),
    lambda c: c.get_device_id(),
    lambda c: c.set_device_id(0xBEEF),
    lambda c: c.get_firmware_version(),
    lambda c: c.set_humidity_correction(40),
    lambda c: c.read_measurement(),
])
def test_commands_need_connection(call, sensor):
    client = SDS011Client(Session(sensor))
    with pytest.raises(NotConnectedError):
        call(client)
    assert sensor.writes == []


def test_get_firmware_version(sensor):
    client = make_client(sensor)
    info = client.get_firmware_version()
    assert (info.year, info.month, info.day) == (18, 11, 16)


def test_reporting_mode(sensor):
    client = make_client(sensor)
    assert client.get_reporting_mode() == ReportingMode.STREAM
    assert client.set_reporting_mode(ReportingMode.QUERY) == ReportingMode.QUERY
    assert sensor.reporting_mode == ReportingMode.QUERY
    assert client.get_reporting_mode() == ReportingMode.QUERY


def test_invalid_reporting_mode(sensor):
    client = make_client(sensor)
    with pytest.raises(InvalidArgumentError):
        client.set_reporting_mode(5)


def test_work_mode(sensor):
    client = make_client(sensor)
    assert client.set_work_mode(WorkMode.SLEEP) == WorkMode.SLEEP
    assert sensor.work_mode == WorkMode.SLEEP
    assert not client.session.pending_request
    assert client.get_work_mode() == WorkMode.SLEEP


def test_working_period(sensor):
    client = make_client(sensor)
    assert client.get_working_period() == 0
    assert client.set_working_period(10) == 10
    assert sensor.working_period == 10
    frame = sensor.writes[-1]
    assert frame[2] == CommandID.WORKING_PERIOD
    assert (frame[3], frame[4]) == (1, 10)


@pytest.mark.parametrize("minutes", [-1, 31, 100])
def test_working_period_out_of_range_sends_nothing(minutes, sensor):
    client = make_client(sensor)
    writes = len(sensor.writes)
    with pytest.raises(InvalidArgumentError):
        client.set_working_period(minutes)
    assert len(sensor.writes) == writes


def test_set_not_confirmed_raises():
    sensor = FakeSensor(sticky=True)
    client = make_client(sensor)
    with pytest.raises(ResponseMismatchError):
        client.set_working_period(10)


def test_device_id(sensor):
    client = make_client(sensor)
    assert client.get_device_id() == 0xA160

    assert client.set_device_id("0xBEEF") == 0xBEEF
    assert client.get_device_id() == 0xBEEF

    # Later commands address the new id
    client.get_working_period()
    assert sensor.writes[-1][15:17] == b"\xEF\xBE"


def test_device_id_not_acknowledged():
    sensor = FakeSensor(sticky=True)
    client = make_client(sensor)
    with pytest.raises(ResponseMismatchError):
        client.set_device_id(0xBEEF)
    assert client.get_device_id() == 0xA160


@pytest.mark.parametrize("text, expected", [
    ("0xAABB", 0xAABB),
    ("0xbeef", 0xBEEF),
    ("A160", 0xA160),
    (0x0001, 0x0001),
])
def test_parse_device_id(text, expected):
    assert parse_device_id(text) == expected


@pytest.mark.parametrize("text", ["0xAAB", "0xAABBCC", "zzzz", 0x10000, -1])
def test_parse_device_id_rejects(text):
    with pytest.raises(InvalidArgumentError):
        parse_device_id(text)


def test_read_measurement_streaming(sensor):
    client = make_client(sensor)
    sensor.stream(1)
    measurement = client.read_measurement(ReportingMode.STREAM)
    assert measurement.pm25 == pytest.approx(12.3)
    assert measurement.pm10 == pytest.approx(45.6)
    assert sensor.commands[-1] == CommandID.FIRMWARE


def test_read_measurement_query(sensor):
    client = make_client(sensor)
    measurement = client.read_measurement(ReportingMode.QUERY)
    assert sensor.commands[-1] == CommandID.QUERY_DATA
    assert not client.session.pending_request
    assert measurement.pm10 == pytest.approx(45.6)


def test_humidity_correction_applied(sensor):
    client = make_client(sensor)
    client.set_humidity_correction(50)
    measurement = client.read_measurement(ReportingMode.QUERY)
    assert measurement.pm25 == pytest.approx(12.3 * 2.8 * 50 ** -0.3745)

    client.set_humidity_correction(0)
    assert client.read_measurement(ReportingMode.QUERY).pm25 == pytest.approx(12.3)


def test_humidity_correction_range(sensor):
    client = make_client(sensor)
    with pytest.raises(InvalidArgumentError):
        client.set_humidity_correction(101)
    with pytest.raises(InvalidArgumentError):
        client.set_humidity_correction(-5)


def test_stale_reply_before_connect_does_not_shift_later_replies():
    sensor = FakeSensor()
    sensor.queue(conf_frame(CommandID.REPORTING_MODE, 0, ReportingMode.QUERY))
    client = make_client(sensor)

    assert client.get_reporting_mode() == ReportingMode.STREAM
    assert client.get_working_period() == 0
    assert client.get_work_mode() == WorkMode.WORK


@pytest.mark.parametrize("attr, call", [
    ("reporting_mode", lambda c: c.get_reporting_mode()),
    ("work_mode", lambda c: c.get_work_mode()),
])
def test_unknown_mode_byte_is_a_protocol_error(attr, call, sensor):
    client = make_client(sensor)
    setattr(sensor, attr, 2)
    with pytest.raises(ResponseMismatchError) as exc:
        call(client)
    assert "value 2" in str(exc.value)
