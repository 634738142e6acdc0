"""Tests for the command line front end."""

import pytest

from sds011_monitor import main as cli
from sds011_monitor.libs.sds011_protocol import WorkMode

from conftest import FakeSensor


@pytest.fixture
def fake_port(monkeypatch):
    """Replace the serial port with a fake sensor, return it."""
    holder = {"sensor": FakeSensor(auto_stream=True)}

    def factory(port, baudrate, timeout):
        holder["port"] = port
        return holder["sensor"]

    monkeypatch.setattr("sds011_monitor.drivers.sds011.SerialTransport", factory)
    monkeypatch.setattr(cli, "install_signal_handlers", lambda monitor: None)
    return holder


def test_parser_defaults():
    args = cli.build_parser().parse_args([])
    assert args.loop == 10
    assert args.delay == 5
    assert args.humidity == 0.0
    assert args.port == "/dev/ttyUSB0"
    assert args.work_mode is None
    assert not args.query_mode


def test_parser_values():
    args = cli.build_parser().parse_args(
        ["-M", "s", "-P", "30", "-D", "0xbeef", "-l", "0", "-w", "3", "-H", "33.5", "-q"]
    )
    assert args.work_mode == WorkMode.SLEEP
    assert args.working_period == 30
    assert args.new_device_id == 0xBEEF
    assert args.loop == 0
    assert args.delay == 3
    assert args.humidity == 33.5
    assert args.query_mode


@pytest.mark.parametrize("argv", [
    ["-P", "31"],
    ["-P", "x"],
    ["-w", "2"],
    ["-D", "beef"],
    ["-D", "0xbee"],
    ["-M", "x"],
    ["-l", "1000"],
    ["-H", "101"],
])
def test_parser_rejects(argv, capsys):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(argv)


def test_console_printer_colors(capsys):
    cli.ConsolePrinter(color=True)("error", "boom")
    cli.ConsolePrinter(color=False)("error", "plain")
    out = capsys.readouterr().out.splitlines()
    assert out[0] == f"{cli.RED}boom{cli.RESET}"
    assert out[1] == "plain"


def test_main_reads_measurements(fake_port, capsys):
    code = cli.main(["-b", "-f", "-d", "-l", "2", "-u", "/dev/ttyUSB3"])

    assert code == 0
    assert fake_port["port"] == "/dev/ttyUSB3"
    out = capsys.readouterr().out
    assert "Firmware date (Y-M-D): 18-11-16" in out
    assert "Current DeviceID: 0xa160" in out
    assert out.count("PM 2.5 12.300000, PM10 45.600000") == 2
    assert "Number of requested loops reached" in out


def test_main_sets_sleep(fake_port, capsys):
    code = cli.main(["-b", "-M", "s"])
    assert code == 0
    assert fake_port["sensor"].work_mode == WorkMode.SLEEP
    assert "Set to sleep" in capsys.readouterr().out


def test_main_unresponsive_sensor(fake_port, capsys):
    fake_port["sensor"] = FakeSensor(silent=True)
    code = cli.main(["-b"])
    assert code == 1
    assert "Error: " in capsys.readouterr().out
    assert not fake_port["sensor"].is_open


def test_main_abort_is_clean(fake_port, capsys, monkeypatch):
    def abort_immediately(monitor):
        monitor.abort()

    monkeypatch.setattr(cli, "install_signal_handlers", abort_immediately)
    code = cli.main(["-b", "-l", "0"])
    assert code == 0
    assert "Stopping SDS-011 monitor" in capsys.readouterr().out


def test_main_warns_on_saturated_humidity(fake_port, capsys):
    code = cli.main(["-b", "-H", "100", "-l", "1"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Humidity of 100% saturates the correction" in out
    assert "PM 2.5 inf, PM10 45.600000" in out
